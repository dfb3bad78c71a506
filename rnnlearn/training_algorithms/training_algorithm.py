"""
The interface shared by the optimizers of rnnlearn.training_algorithms.
"""
import logging

import numpy as np

logger = logging.getLogger(__name__)


class TrainingAlgorithm(object):
    """
    Base class of the optimizers, which minimize the objective of a
    network.

    A training algorithm drives any object implementing the objective
    contract of `rnnlearn.models.rnn.RNN` (`evaluate`,
    `evaluate_with_gradient`, `gradient`, `num_functions`, `shuffle`).
    It can be used directly through `optimize`, or epoch by epoch by
    `rnnlearn.train.Train` through `setup`, `train` and
    `continue_learning`.
    """

    def setup(self, model, dataset):
        """
        Hands the training data of `dataset` to `model` and resets the
        algorithm.

        Parameters
        ----------
        model : RNN
            The model to train.
        dataset : SequenceDataset
            Its predictors and responses are handed to the model.
        """
        model.set_data(dataset.predictors, dataset.responses)
        self.model = model
        self.reset()

    def reset(self):
        """
        Forgets the progress of previous runs.
        """
        pass

    def train(self, dataset):
        """
        Performs some amount of training, generally one epoch.

        Parameters
        ----------
        dataset : object
            The dataset given to `setup`.

        Returns
        -------
        None
        """
        raise NotImplementedError()

    def continue_learning(self, model):
        """
        Return True to continue learning.

        Parameters
        ----------
        model : RNN
            The model being trained.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "continue_learning.")

    def optimize(self, function, parameters, callbacks=None):
        """
        Minimizes `function` until `continue_learning` says to stop, or a
        callback does.

        Parameters
        ----------
        function : object
            Implements the objective contract.
        parameters : ndarray
            Starting point, updated in place.
        callbacks : list of callable, optional
            Called after every epoch with `(function, parameters,
            objective)`; one returning True ends the optimization. See
            `rnnlearn.training_algorithms.callbacks`.

        Returns
        -------
        objective : float
            The objective at the final parameters. NaN or Inf if the
            optimization diverged.
        """
        self.model = function
        self.reset()
        callbacks = list(callbacks or [])
        for callback in callbacks:
            if hasattr(callback, 'reset'):
                callback.reset()
        while self.continue_learning(function):
            self.run_epoch(function, parameters)
            if not np.isfinite(self.objective):
                return self.objective
            # Every callback sees every epoch, even after one asked to stop.
            stop = [callback(function, parameters, self.objective)
                    for callback in callbacks]
            if any(stop):
                logger.info("%s: stopped by a callback after an objective "
                            "of %f", type(self).__name__, self.objective)
                break
        return full_objective(function, parameters)

    def run_epoch(self, function, parameters):
        """
        Performs one epoch on `function`, updating `parameters` in place
        and setting `self.objective`.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "run_epoch.")


def full_objective(function, parameters, batch_size=None):
    """
    Sums `function.evaluate` over all its separable terms.

    Parameters
    ----------
    function : object
        Implements the objective contract.
    parameters : ndarray
        Where to evaluate.
    batch_size : int, optional
        Number of terms evaluated at once. Defaults to all of them.

    Returns
    -------
    objective : float
    """
    n = function.num_functions()
    if n == 0:
        raise ValueError("The objective has no separable terms; was any "
                         "data given to the model?")
    if batch_size is None:
        batch_size = n
    objective = 0.
    for begin in range(0, n, batch_size):
        objective += function.evaluate(parameters, begin,
                                       min(batch_size, n - begin))
    return objective
