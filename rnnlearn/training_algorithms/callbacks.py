"""
Callbacks run after every epoch of `TrainingAlgorithm.optimize`.

A callback is any callable taking `(function, parameters, objective)`:
the object being optimized, the parameter vector after the epoch and the
epoch objective. Returning True stops the optimization; None or False
lets it continue. Callbacks with a `reset` method are reset when an
optimization starts.
"""
__license__ = "3-clause BSD"

import logging

import numpy as np

logger = logging.getLogger(__name__)


class Callback(object):
    """
    Base class of the stateful callbacks.
    """

    def reset(self):
        """
        Forgets the epochs seen by a previous optimization.
        """
        pass

    def __call__(self, function, parameters, objective):
        """
        Called after every epoch.

        Parameters
        ----------
        function : object
            The object being optimized, e.g. an `RNN`.
        parameters : ndarray
            The parameters after the epoch. Not to be modified.
        objective : float
            The objective reported by the epoch.

        Returns
        -------
        stop : bool
            True to stop the optimization.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "__call__.")


class EpochCounter(Callback):
    """
    Stops the optimization after `max_epochs` epochs.

    Parameters
    ----------
    max_epochs : int
        Number of epochs to run.
    """

    def __init__(self, max_epochs):
        if max_epochs < 1:
            raise ValueError("max_epochs must be positive, got %s" %
                             max_epochs)
        self.max_epochs = int(max_epochs)
        self.reset()

    def reset(self):
        self.epochs = 0

    def __call__(self, function, parameters, objective):
        self.epochs += 1
        return self.epochs >= self.max_epochs


class EarlyStopping(Callback):
    """
    Stops the optimization once the objective has not improved by at
    least a proportion `prop_decrease` of its best value for `N`
    consecutive epochs.

    Parameters
    ----------
    prop_decrease : float, optional
        Relative decrease counted as an improvement.
    N : int, optional
        Number of epochs to wait for an improvement.
    """

    def __init__(self, prop_decrease=.01, N=5):
        if N < 1:
            raise ValueError("N must be positive, got %s" % N)
        self.prop_decrease = prop_decrease
        self.N = int(N)
        self.reset()

    def reset(self):
        self.countdown = self.N
        self.best_objective = np.inf

    def __call__(self, function, parameters, objective):
        if objective < (1. - self.prop_decrease) * self.best_objective:
            self.countdown = self.N
        else:
            self.countdown -= 1
        self.best_objective = min(self.best_objective, objective)
        if self.countdown <= 0:
            logger.info("EarlyStopping: no improvement in %d epochs, best "
                        "objective %f", self.N, self.best_objective)
            return True
        return False


class LogObjective(Callback):
    """
    Logs the objective of every epoch.

    Parameters
    ----------
    level : int, optional
        Logging level of the messages.
    """

    def __init__(self, level=logging.INFO):
        self.level = level
        self.reset()

    def reset(self):
        self.epochs = 0

    def __call__(self, function, parameters, objective):
        self.epochs += 1
        logger.log(self.level, "Epoch %d: objective %s", self.epochs,
                   objective)
        return False
