"""
Rules filling the parameter vector of a network.

`rnnlearn.models.rnn.RNN` asks its rule for the whole flat vector at
once, when the layout is built and on `reset_parameters`. The layers then
read their weights from slices of that vector, so a rule sees no layer
structure: every parameter is drawn from the same distribution.
"""
__license__ = "3-clause BSD"

import numpy as np

from rnnlearn.configdefaults import config


class NdarrayInitialization(object):
    """
    Base class of the initialization rules. Subclasses implement
    `generate`.
    """

    def initialize(self, rng, shape):
        """
        Returns an array of shape `shape` and dtype `config.floatX`.

        Parameters
        ----------
        rng : numpy.random.RandomState
            The network's generator, so that a seeded network always
            starts from the same parameters.
        shape : tuple
            Usually `(n_parameters,)`.
        """
        return np.array(self.generate(rng, shape), dtype=config.floatX)

    def generate(self, rng, shape):
        """
        Draws the values, in any float dtype.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "generate.")


class Constant(NdarrayInitialization):
    """
    Sets every parameter to `constant`, which may also be an array
    broadcastable to the requested shape.

    Parameters
    ----------
    constant : array_like
    """

    def __init__(self, constant):
        self.constant = np.asarray(constant)

    def generate(self, rng, shape):
        try:
            return np.broadcast_to(self.constant, shape)
        except ValueError:
            raise ValueError("Cannot broadcast a constant of shape %s to "
                             "the parameter shape %s" %
                             (self.constant.shape, tuple(shape)))

    def __str__(self):
        text = str(self.constant)
        if len(text) > 20:
            text = "..."
        return "Constant(%s)" % text


class IsotropicGaussian(NdarrayInitialization):
    """
    Draws every parameter from `N(mean, std ** 2)`.

    Parameters
    ----------
    mean : float, optional
    std : float, optional
    """

    def __init__(self, mean=0, std=1):
        self.mean = mean
        self.std = std

    def generate(self, rng, shape):
        return rng.normal(self.mean, self.std, size=shape)

    def __str__(self):
        return "IsotropicGaussian(mean=%s, std=%s)" % (self.mean, self.std)


class Uniform(NdarrayInitialization):
    """
    Draws every parameter uniformly on `[mean - width / 2,
    mean + width / 2]`.

    Parameters
    ----------
    mean : float, optional
        Center of the interval.
    width : float, optional
        Length of the interval.
    std : float, optional
        Standard deviation of the draws, `width / sqrt(12)`. Give either
        `width` or `std`.
    """

    def __init__(self, mean=0., width=None, std=None):
        if (width is None) == (std is None):
            raise ValueError("Uniform takes exactly one of width and std, "
                             "got width=%s, std=%s" % (width, std))
        self.mean = mean
        self.std = std
        self.width = width if std is None else np.sqrt(12) * std

    def generate(self, rng, shape):
        half = self.width / 2.
        return rng.uniform(self.mean - half, self.mean + half, size=shape)

    def __str__(self):
        args = []
        if self.mean != 0:
            args.append('mean=%s' % self.mean)
        if self.std is None:
            args.append('width=%s' % self.width)
        else:
            args.append('std=%s' % self.std)
        return '%s(%s)' % (type(self).__name__, ', '.join(args))


class RandomInitialization(Uniform):
    """
    Uniform initialization on `[lower, upper]`, the rule networks use when
    none is given.

    Parameters
    ----------
    lower : float, optional
    upper : float, optional
    """

    def __init__(self, lower=-1., upper=1.):
        if upper < lower:
            raise ValueError("RandomInitialization needs lower <= upper, "
                             "got lower=%s, upper=%s" % (lower, upper))
        self.lower = lower
        self.upper = upper
        super(RandomInitialization, self).__init__(
            mean=(lower + upper) / 2., width=upper - lower)

    def __str__(self):
        return "RandomInitialization(lower=%s, upper=%s)" % (self.lower,
                                                              self.upper)
