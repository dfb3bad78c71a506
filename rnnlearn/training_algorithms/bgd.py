"""
Batch gradient descent: full-batch steepest descent trying a fixed set
of step sizes at every iteration.
"""
__license__ = "3-clause BSD"

import logging

import numpy as np

from rnnlearn.training_algorithms.training_algorithm import (
    TrainingAlgorithm, full_objective)

logger = logging.getLogger(__name__)


class BatchGradientDescent(TrainingAlgorithm):
    """
    A class for minimizing a function via the method of steepest
    descent.

    Parameters
    ----------
    init_alpha : tuple of float, optional
        Step sizes tried along the negative gradient at every iteration;
        the one giving the lowest objective is kept.
    max_iterations : int, optional
        Number of descent steps; 0 means no limit.
    tolerance : float, optional
        Stop when a step improves the objective by less than this.
    batch_size : int, optional
        Number of examples evaluated at once. Defaults to all of them.
    """

    def __init__(self, init_alpha=None, max_iterations=100, tolerance=1e-6,
                 batch_size=None):
        if init_alpha is None:
            init_alpha = (.001, .005, .01, .05, .1)
        self.init_alpha = tuple([float(elem) for elem in init_alpha])
        if len(self.init_alpha) == 0 or min(self.init_alpha) <= 0:
            raise ValueError("init_alpha must hold positive step sizes, got "
                             "%s" % (init_alpha,))
        self.max_iterations = int(max_iterations)
        self.tolerance = tolerance
        self.batch_size = batch_size
        self.reset()

    def reset(self):
        self.iterations = 0
        self.objective = np.inf
        self.converged = False

    def train(self, dataset):
        self.run_epoch(self.model, self.model.parameters)

    def continue_learning(self, model):
        if self.converged:
            return False
        if self.iterations > 0 and not np.isfinite(self.objective):
            return False
        return self.max_iterations == 0 or \
            self.iterations < self.max_iterations

    def _full_gradient(self, function, parameters):
        n = function.num_functions()
        batch_size = n if self.batch_size is None else self.batch_size
        total = np.zeros_like(parameters)
        partial = np.zeros_like(parameters)
        objective = 0.
        for begin in range(0, n, batch_size):
            size = min(batch_size, n - begin)
            objective += function.evaluate_with_gradient(parameters, begin,
                                                         partial, size)
            total += partial
        return objective, total

    def run_epoch(self, function, parameters):
        """
        Performs one steepest descent step.
        """
        objective, gradient = self._full_gradient(function, parameters)
        self.iterations += 1
        if not np.isfinite(objective):
            logger.warning("BatchGradientDescent: objective is %s; "
                           "terminating with failure.", objective)
            self.objective = objective
            return
        origin = parameters.copy()
        best_obj = objective
        best_alpha = None
        for alpha in self.init_alpha:
            candidate = origin - alpha * gradient
            obj = full_objective(function, candidate, self.batch_size)
            logger.debug("\t%f: %f", alpha, obj)
            if obj < best_obj:
                best_obj = obj
                best_alpha = alpha
        if best_alpha is None:
            parameters[...] = origin
            self.objective = objective
            self.converged = True
            logger.info("BatchGradientDescent: no step size decreased the "
                        "objective; terminating optimization.")
            return
        parameters[...] = origin - best_alpha * gradient
        logger.info("BatchGradientDescent: iteration %d, step size %f, "
                    "objective %f", self.iterations, best_alpha, best_obj)
        if objective - best_obj < self.tolerance:
            self.converged = True
        self.objective = best_obj
