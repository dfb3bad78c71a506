"""
Output layers: the error metrics that score the network output of one
time step against the matching response slice.

Both arguments of `forward` and `backward` are `(feature, batch)`
matrices. The network sums the values returned by `forward` over the
scored time steps.
"""
import logging

import numpy as np


logger = logging.getLogger(__name__)


class OutputLayer(object):
    """
    Represents the error metric minimized by the training algorithms.
    One instance is selected when the network is built and kept for its
    whole lifetime.
    """

    def forward(self, state, target):
        """
        Returns the loss of one time step.

        Parameters
        ----------
        state : ndarray
            Output of the last layer, shape `(feature, batch)`.
        target : ndarray
            The matching response slice.

        Returns
        -------
        loss : float
            The loss. NaN or Inf are returned as is.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "forward.")

    def backward(self, state, target):
        """
        Returns the gradient of `forward` with respect to `state`.

        Parameters
        ----------
        state : ndarray
            Output of the last layer, shape `(feature, batch)`.
        target : ndarray
            The matching response slice.

        Returns
        -------
        error : ndarray
            Same shape as `state`.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "backward.")

    def __str__(self):
        return self.__class__.__name__


class MeanSquaredError(OutputLayer):
    """
    Squared error summed over features and averaged over the batch
    columns, `sum((state - target) ** 2) / batch_size`.
    """

    def forward(self, state, target):
        return float(np.sum((state - target) ** 2) / target.shape[1])

    def backward(self, state, target):
        return (2. * (state - target) / target.shape[1]).astype(state.dtype)


class NegativeLogLikelihood(OutputLayer):
    """
    Negative log likelihood of integer class labels.

    The state holds log-probabilities (see `rnnlearn.models.mlp.LogSoftmax`),
    one row per class. The target is a single row of 0-based class indices.
    """

    def _labels(self, state, target):
        labels = np.asarray(target).reshape(-1)
        if labels.shape[0] != state.shape[1]:
            raise ValueError("NegativeLogLikelihood expects one label per "
                             "column: got %d labels for %d columns" %
                             (labels.shape[0], state.shape[1]))
        int_labels = labels.astype(np.int64)
        if np.any(int_labels != labels):
            raise ValueError("NegativeLogLikelihood labels must be "
                             "integers, got %s" % labels)
        if np.any(int_labels < 0) or np.any(int_labels >= state.shape[0]):
            raise ValueError("NegativeLogLikelihood labels must lie in "
                             "[0, %d), got %s" % (state.shape[0], labels))
        return int_labels

    def forward(self, state, target):
        labels = self._labels(state, target)
        return float(-np.sum(state[labels, np.arange(state.shape[1])]))

    def backward(self, state, target):
        labels = self._labels(state, target)
        error = np.zeros_like(state)
        error[labels, np.arange(state.shape[1])] = -1.
        return error


class CrossEntropyError(OutputLayer):
    """
    Binary cross entropy between probabilities in `state` and targets in
    [0, 1].

    Parameters
    ----------
    eps : float, optional
        Added inside the logarithms and to the denominator of the
        gradient to avoid divisions by zero.
    """

    def __init__(self, eps=1e-10):
        self.eps = eps

    def forward(self, state, target):
        eps = self.eps
        return float(-np.sum(target * np.log(state + eps) +
                             (1. - target) * np.log(1. - state + eps)))

    def backward(self, state, target):
        error = (state - target) / ((1. - state) * state + self.eps)
        return error.astype(state.dtype)


def default_output_layer():
    """
    Returns the output layer networks use when none is given.
    """
    return NegativeLogLikelihood()


def check_output_layer(output_layer):
    """
    Raises a TypeError unless `output_layer` implements the output layer
    contract.
    """
    for method in ('forward', 'backward'):
        if not callable(getattr(output_layer, method, None)):
            raise TypeError("%s can not be used as an output layer: it has "
                            "no %s method" % (output_layer, method))
    return output_layer
