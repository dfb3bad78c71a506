"""
Update rules used by `rnnlearn.training_algorithms.sgd.SGD` in place of
the plain `parameters -= learning_rate * gradient` step.

A rule changes the flat parameter vector in place. State it keeps
between steps (velocities, squared-gradient sums) is a vector of the same
shape, allocated on the first update and dropped by `reset`.
"""
import numpy as np


class LearningRule(object):
    """
    Base class of the update rules.
    """

    def reset(self):
        """
        Drops the state of previous updates. `SGD.reset` calls it before
        every optimization.
        """
        pass

    def update(self, parameters, gradient, learning_rate):
        """
        Applies one step to `parameters`, in place.

        Parameters
        ----------
        parameters : ndarray
            The flat parameter vector.
        gradient : ndarray
            Gradient of the batch objective at `parameters`.
        learning_rate : float
            Step size of the current iteration.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "update.")

    def _state_like(self, name, parameters):
        # Reallocated when the network grew or shrank since the last step.
        state = getattr(self, name, None)
        if state is None or state.shape != parameters.shape:
            state = np.zeros_like(parameters)
            setattr(self, name, state)
        return state


class Momentum(LearningRule):
    """
    Heavy-ball momentum: the step is a velocity `inc` decaying by
    `init_momentum` and pushed by the gradient,

    .. code-block:: none

        inc = momentum * inc - learning_rate * gradient
        parameters += inc

    With `nesterov_momentum`, the gradient is applied once more, as if it
    had been evaluated at the look-ahead point, so the step is
    `momentum * inc - learning_rate * gradient` (Sutskever et al., 2013).

    Parameters
    ----------
    init_momentum : float
        Decay of the velocity, in [0, 1).
    nesterov_momentum : bool, optional
    """

    def __init__(self, init_momentum, nesterov_momentum=False):
        if not 0. <= init_momentum < 1.:
            raise ValueError("init_momentum must lie in [0, 1), got %s" %
                             init_momentum)
        self.momentum = init_momentum
        self.nesterov_momentum = nesterov_momentum
        self.reset()

    def reset(self):
        self.inc = None

    def update(self, parameters, gradient, learning_rate):
        inc = self._state_like('inc', parameters)
        inc *= self.momentum
        inc -= learning_rate * gradient
        if self.nesterov_momentum:
            parameters += self.momentum * inc - learning_rate * gradient
        else:
            parameters += inc


class AdaGrad(LearningRule):
    """
    Divides the step of every parameter by the root of its summed squared
    gradients (Duchi et al., 2011), so parameters with large past
    gradients move less.

    Parameters
    ----------
    eps : float, optional
        Added under the square root.
    """

    def __init__(self, eps=1e-6):
        self.eps = eps
        self.reset()

    def reset(self):
        self.sum_square_grad = None

    def update(self, parameters, gradient, learning_rate):
        sum_square_grad = self._state_like('sum_square_grad', parameters)
        sum_square_grad += np.square(gradient)
        parameters -= (learning_rate * gradient /
                       np.sqrt(sum_square_grad + self.eps))


class RMSProp(LearningRule):
    """
    Like `AdaGrad`, but with an exponential moving average of the squared
    gradients instead of their sum, so old gradients are forgotten.

    Parameters
    ----------
    decay : float, optional
        Weight of the previous average, in [0, 1).
    max_scaling : float, optional
        Upper bound of the factor applied to the gradient; the root mean
        square is clipped below at `1 / max_scaling`.
    """

    def __init__(self, decay=0.9, max_scaling=1e5):
        if not 0. <= decay < 1.:
            raise ValueError("decay must lie in [0, 1), got %s" % decay)
        if max_scaling <= 0:
            raise ValueError("max_scaling must be positive, got %s" %
                             max_scaling)
        self.decay = decay
        self.epsilon = 1. / max_scaling
        self.reset()

    def reset(self):
        self.mean_square_grad = None

    def update(self, parameters, gradient, learning_rate):
        mean_square_grad = self._state_like('mean_square_grad', parameters)
        mean_square_grad *= self.decay
        mean_square_grad += (1 - self.decay) * np.square(gradient)
        rms_grad = np.maximum(np.sqrt(mean_square_grad), self.epsilon)
        parameters -= learning_rate * gradient / rms_grad
