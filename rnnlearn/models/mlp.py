"""
Layers that can be stacked inside a `rnnlearn.models.rnn.RNN`.

All layers work on one time step at a time. Activations are
`(feature, batch)` matrices: one column per example.
"""
__license__ = "3-clause BSD"

import logging
from collections import deque

import numpy as np

from rnnlearn.expr import activations
from rnnlearn.utils import wraps
from rnnlearn.utils.rng import make_np_rng

logger = logging.getLogger(__name__)


class Layer(object):
    """
    Abstract class. A Layer of a recurrent network.

    May only belong to one network. Its parameters, if any, live in the
    network's `ParameterArena`; the layer only remembers its slot.
    """

    def __init__(self):
        self.deterministic = False
        self._arena = None
        self._slot = None

    def get_rnn(self):
        """
        Returns the network that this layer belongs to.

        Returns
        -------
        rnn : RNN
            The network that this layer belongs to, or None if it has not
            been added to a network yet.
        """
        return getattr(self, 'rnn', None)

    def set_rnn(self, rnn):
        """
        Assigns this layer to a network.

        Parameters
        ----------
        rnn : RNN or None
            The new owner. None detaches the layer.
        """
        owner = self.get_rnn()
        if rnn is not None and owner is not None and owner is not rnn:
            raise ValueError("%s already belongs to another network; "
                             "release() it from that network first" %
                             self)
        self.rnn = rnn

    def bind(self, arena, slot):
        """
        Points the layer at its sub-range of a parameter arena.

        Parameters
        ----------
        arena : ParameterArena
            The arena holding the parameters of the whole network.
        slot : tuple
            The `(offset, length)` pair of this layer.
        """
        if slot[1] != self.get_param_count():
            raise ValueError("%s needs %d parameters but was given a slot "
                             "of length %d" %
                             (self, self.get_param_count(), slot[1]))
        self._arena = arena
        self._slot = slot

    def unbind(self):
        """
        Forgets the parameter arena.
        """
        self._arena = None
        self._slot = None

    def get_param_view(self):
        """
        Returns the layer's parameters as a writable view into the arena.
        """
        if self._arena is None:
            raise ValueError("%s is not bound to a parameter buffer. Add it "
                             "to an RNN and call reset() first." % self)
        return self._arena.view(self._slot)

    def get_param_count(self):
        """
        Returns the number of parameters of the layer. It does not change
        after construction.
        """
        return 0

    def fprop(self, state_below):
        """
        Does the forward prop transformation for this layer.

        Parameters
        ----------
        state_below : ndarray
            The input of the layer, shape `(feature, batch)`.

        Returns
        -------
        state : ndarray
            The output of the layer, shape `(feature, batch)`. Recurrent
            layers also update their internal state.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "fprop.")

    def bprop(self, state, error):
        """
        Computes the error with respect to the layer input.

        Steps are walked from the newest to the oldest, mirroring the
        order of the `fprop` calls.

        Parameters
        ----------
        state : ndarray
            The output `fprop` returned for this step.
        error : ndarray
            The error with respect to `state`.

        Returns
        -------
        error_below : ndarray
            The error with respect to the input of this step.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "bprop.")

    def gradient(self, state_below, error, gradient):
        """
        Accumulates the parameter gradient of one step into `gradient`.

        The default implementation does nothing: layers without trainable
        parameters, and frozen layers, contribute a zero gradient.

        Parameters
        ----------
        state_below : ndarray
            The input of the layer at this step.
        error : ndarray
            The error with respect to the layer output at this step.
        gradient : ndarray
            The layer's slot of the network gradient vector. Added to,
            never overwritten.
        """
        pass

    def reset_cell(self, rho):
        """
        Clears any memory kept between time steps.

        Parameters
        ----------
        rho : int
            Number of steps the layer must remember for backpropagation.
        """
        pass

    def set_deterministic(self, deterministic):
        """
        Switches between training (False) and inference (True) behavior.
        """
        self.deterministic = bool(deterministic)

    def __str__(self):
        return self.__class__.__name__


class Linear(Layer):
    """
    An affine transformation `W x + b`.

    Parameters
    ----------
    in_size : int
        Number of input features.
    out_size : int
        Number of output features.
    """

    def __init__(self, in_size, out_size):
        super(Linear, self).__init__()
        if in_size <= 0 or out_size <= 0:
            raise ValueError("Linear needs positive sizes, got in_size=%s, "
                             "out_size=%s" % (in_size, out_size))
        self.in_size = int(in_size)
        self.out_size = int(out_size)

    def get_param_count(self):
        return self.out_size * self.in_size + self.out_size

    def _unpack(self, vector):
        n_weights = self.out_size * self.in_size
        W = vector[:n_weights].reshape((self.out_size, self.in_size))
        b = vector[n_weights:]
        return W, b

    def get_weights(self):
        """
        Returns `(W, b)` as views into the parameter arena.
        """
        return self._unpack(self.get_param_view())

    @wraps(Layer.fprop)
    def fprop(self, state_below):
        W, b = self.get_weights()
        if state_below.shape[0] != self.in_size:
            raise ValueError("%s expects %d input features, got %d" %
                             (self, self.in_size, state_below.shape[0]))
        return np.dot(W, state_below) + b[:, np.newaxis]

    @wraps(Layer.bprop)
    def bprop(self, state, error):
        W, _ = self.get_weights()
        return np.dot(W.T, error)

    @wraps(Layer.gradient)
    def gradient(self, state_below, error, gradient):
        gW, gb = self._unpack(gradient)
        gW += np.dot(error, state_below.T)
        gb += error.sum(axis=1)

    def __str__(self):
        return "Linear(%d -> %d)" % (self.in_size, self.out_size)


class ActivationLayer(Layer):
    """
    A parameterless layer applying an elementwise nonlinearity.

    Parameters
    ----------
    nonlinearity : Nonlinearity
        See `rnnlearn.expr.activations`.
    """

    def __init__(self, nonlinearity):
        super(ActivationLayer, self).__init__()
        self.nonlinearity = nonlinearity

    def fprop(self, state_below):
        return self.nonlinearity(state_below)

    def bprop(self, state, error):
        return error * self.nonlinearity.deriv(state)


class Identity(ActivationLayer):
    """Passes its input through unchanged."""

    def __init__(self):
        super(Identity, self).__init__(activations.Identity())

    def bprop(self, state, error):
        return error


class Sigmoid(ActivationLayer):
    """Logistic sigmoid units."""

    def __init__(self):
        super(Sigmoid, self).__init__(activations.Sigmoid())


class Tanh(ActivationLayer):
    """Hyperbolic tangent units."""

    def __init__(self):
        super(Tanh, self).__init__(activations.Tanh())


class RectifiedLinear(ActivationLayer):
    """
    Rectified linear units.

    Parameters
    ----------
    left_slope : float, optional
        Slope for negative inputs.
    """

    def __init__(self, left_slope=0.0):
        super(RectifiedLinear, self).__init__(
            activations.Rectifier(left_slope))


class LogSoftmax(Layer):
    """
    Log of the softmax over the feature axis, to be paired with
    `rnnlearn.costs.cost.NegativeLogLikelihood`.
    """

    def fprop(self, state_below):
        shifted = state_below - state_below.max(axis=0)
        return shifted - np.log(np.exp(shifted).sum(axis=0))

    def bprop(self, state, error):
        return error - np.exp(state) * error.sum(axis=0)


class Dropout(Layer):
    """
    Zeroes each input with probability `ratio` during training and scales
    the others by `1 / (1 - ratio)`. In deterministic mode it is the
    identity.

    Parameters
    ----------
    ratio : float, optional
        Probability of dropping an input.
    seed : int, optional
        Seed of the mask generator.
    """

    def __init__(self, ratio=0.5, seed=None):
        super(Dropout, self).__init__()
        ratio = float(ratio)
        if not 0. <= ratio < 1.:
            raise ValueError("Dropout ratio must lie in [0, 1), got %s" %
                             ratio)
        self.ratio = ratio
        self.rng = make_np_rng(seed, default_seed=[2014, 10, 18],
                               which_method='binomial')
        self.reset_cell(None)

    def reset_cell(self, rho):
        self._masks = deque(maxlen=rho)
        self._bprop_index = 0

    def fprop(self, state_below):
        if self.deterministic:
            return state_below
        scale = 1. / (1. - self.ratio)
        mask = self.rng.binomial(1, 1. - self.ratio,
                                 size=state_below.shape) * scale
        mask = mask.astype(state_below.dtype)
        self._masks.append(mask)
        self._bprop_index = len(self._masks)
        return state_below * mask

    def bprop(self, state, error):
        if self.deterministic:
            return error
        self._bprop_index -= 1
        return error * self._masks[self._bprop_index]

    def __getstate__(self):
        d = dict(self.__dict__)
        d.pop('_masks', None)
        return d

    def __setstate__(self, d):
        self.__dict__.update(d)
        self.reset_cell(None)
