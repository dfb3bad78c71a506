"""
Stochastic Gradient Descent
"""
__license__ = "3-clause BSD"

import logging

import numpy as np

from rnnlearn.training_algorithms.training_algorithm import TrainingAlgorithm

logger = logging.getLogger(__name__)


class SGD(TrainingAlgorithm):
    """
    Mini-batch stochastic gradient descent.

    Each epoch optionally shuffles the examples, then walks them in
    consecutive batches of `batch_size`, calling
    `evaluate_with_gradient` and applying the learning rule. The epoch
    objective is the sum of the batch objectives.

    Parameters
    ----------
    learning_rate : float, optional
        The learning rate to use.
    batch_size : int, optional
        Number of examples per update.
    max_iterations : int, optional
        Number of examples to visit before stopping; 0 means no limit.
    tolerance : float, optional
        Stop when two consecutive epoch objectives differ by less than
        this.
    shuffle : bool, optional
        Shuffle the examples at the start of every epoch.
    learning_rule : LearningRule, optional
        A learning rule such as `Momentum`. None gives plain
        `parameters -= learning_rate * gradient` updates.
    """

    def __init__(self, learning_rate=0.01, batch_size=32,
                 max_iterations=100000, tolerance=1e-5, shuffle=True,
                 learning_rule=None):
        if learning_rate <= 0:
            raise ValueError("learning_rate must be positive, got %s" %
                             learning_rate)
        if batch_size < 1:
            raise ValueError("batch_size must be positive, got %s" %
                             batch_size)
        if max_iterations < 0:
            raise ValueError("max_iterations must be non-negative, got %s" %
                             max_iterations)
        self.learning_rate = float(learning_rate)
        self.batch_size = int(batch_size)
        self.max_iterations = int(max_iterations)
        self.tolerance = tolerance
        self.shuffle = shuffle
        self.learning_rule = learning_rule
        self.reset()

    def reset(self):
        self.iterations = 0
        self.epochs = 0
        self.objective = np.inf
        self.last_objective = np.inf
        self.converged = False
        if self.learning_rule is not None:
            self.learning_rule.reset()

    def _budget_left(self):
        if self.max_iterations == 0:
            return np.inf
        return self.max_iterations - self.iterations

    def train(self, dataset):
        self.run_epoch(self.model, self.model.parameters)

    def continue_learning(self, model):
        if self.converged:
            return False
        if self.epochs > 0 and not np.isfinite(self.objective):
            return False
        return self._budget_left() > 0

    def run_epoch(self, function, parameters):
        n = function.num_functions()
        if n == 0:
            raise ValueError("SGD needs at least one example; was any data "
                             "given to the model?")
        if self.shuffle:
            function.shuffle()
        gradient = np.zeros_like(parameters)
        objective = 0.
        for begin in range(0, n, self.batch_size):
            budget = self._budget_left()
            if budget <= 0:
                break
            size = int(min(self.batch_size, n - begin, budget))
            objective += function.evaluate_with_gradient(parameters, begin,
                                                         gradient, size)
            if self.learning_rule is None:
                parameters -= self.learning_rate * gradient
            else:
                self.learning_rule.update(parameters, gradient,
                                          self.learning_rate)
            self.iterations += size
        self.epochs += 1
        self.objective = objective

        if not np.isfinite(objective):
            logger.warning("SGD: objective is %s at epoch %d; terminating "
                           "with failure. Try a smaller learning rate.",
                           objective, self.epochs)
            return
        logger.info("SGD: epoch %d, objective %f", self.epochs, objective)
        if abs(self.last_objective - objective) < self.tolerance:
            logger.info("SGD: minimized within tolerance %s; terminating "
                        "optimization.", self.tolerance)
            self.converged = True
        self.last_objective = objective
        if self._budget_left() <= 0:
            logger.info("SGD: maximum iterations (%d) reached; terminating "
                        "optimization.", self.max_iterations)
