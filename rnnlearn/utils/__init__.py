"""
Assorted helpers shared across rnnlearn.
"""
import logging

import numpy as np

from rnnlearn.configdefaults import config

logger = logging.getLogger(__name__)

py_integer_types = (int, np.integer)


def is_iterable(obj):
    """
    Returns True if `iter(obj)` succeeds. Generators count, although they
    have no `__len__`.
    """
    try:
        iter(obj)
    except TypeError:
        return False
    return True


def as_floatX(variable):
    """
    Casts a given variable into dtype `config.floatX`. Python floats
    become 0-D ndarrays; everything else goes through `np.asarray`.

    Parameters
    ----------
    variable : float or array_like
        The value to cast.

    Returns
    -------
    rval : ndarray
        `variable` with dtype `config.floatX`. No copy is made when the
        input already is an ndarray of that dtype.
    """
    return np.asarray(variable, dtype=config.floatX)


def safe_zip(*args):
    """zip that raises a ValueError when the sequences differ in length."""
    base = len(args[0])
    for i, arg in enumerate(args[1:]):
        if len(arg) != base:
            raise ValueError("Argument 0 has length %d but argument %d has "
                             "length %d" % (base, i+1, len(arg)))
    return zip(*args)


def wraps(wrapped, append=False):
    """
    Decorator for a method overriding `wrapped`. The method takes the
    name of `wrapped`, and its docstring becomes the docstring of
    `wrapped` followed by its own.

    The layers use it on `fprop`, `bprop` and `gradient` so that they keep
    the documentation of the `Layer` contract and only add what differs,
    typically in a Notes section.

    Parameters
    ----------
    wrapped : function
        The overridden method.
    append : bool, optional
        Put the docstring of `wrapped` after the method's own instead.
    """
    def decorate(wrapper):
        inherited = wrapped.__doc__ or ""
        own = wrapper.__doc__ or ""
        if append:
            wrapper.__doc__ = own + inherited
        else:
            wrapper.__doc__ = inherited + own
        wrapper.__module__ = wrapped.__module__
        wrapper.__name__ = wrapped.__name__
        wrapper.__dict__.update(getattr(wrapped, '__dict__', {}))
        return wrapper
    return decorate
