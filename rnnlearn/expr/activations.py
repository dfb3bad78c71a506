"""
Elementwise nonlinearities shared by the feedforward and recurrent layers.

Every nonlinearity computes its derivative from its own *output*, which
is what the layers cache during the forward pass.
"""
import numpy as np


class Nonlinearity(object):
    """
    Base class for elementwise nonlinearities.
    """

    def __call__(self, x):
        """
        Apply the nonlinearity.

        Parameters
        ----------
        x : ndarray
            Pre-activation values.

        Returns
        -------
        y : ndarray
            Activations, same shape as `x`.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "__call__.")

    def deriv(self, y):
        """
        Derivative of the nonlinearity, expressed in terms of its output.

        Parameters
        ----------
        y : ndarray
            The output of `__call__`.

        Returns
        -------
        dy : ndarray
            dy/dx evaluated elementwise, same shape as `y`.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "deriv.")

    def __str__(self):
        return self.__class__.__name__


class Identity(Nonlinearity):
    """
    The identity function. Useful to get a plain linear recurrence.
    """

    def __call__(self, x):
        return x

    def deriv(self, y):
        return np.ones_like(y)


class Tanh(Nonlinearity):
    """Hyperbolic tangent."""

    def __call__(self, x):
        return np.tanh(x)

    def deriv(self, y):
        return 1. - y ** 2


class Sigmoid(Nonlinearity):
    """Logistic sigmoid."""

    def __call__(self, x):
        # Stable on both tails.
        return np.exp(-np.logaddexp(0., -x))

    def deriv(self, y):
        return y * (1. - y)


class Rectifier(Nonlinearity):
    """
    Rectified linear function, `max(0, x)`.

    Parameters
    ----------
    left_slope : float, optional
        Slope used for negative inputs. 0 gives the plain rectifier, a
        small positive value a leaky one.
    """

    def __init__(self, left_slope=0.):
        self.left_slope = left_slope

    def __call__(self, x):
        return np.where(x > 0., x, self.left_slope * x)

    def deriv(self, y):
        return np.where(y > 0., 1., self.left_slope).astype(y.dtype)

