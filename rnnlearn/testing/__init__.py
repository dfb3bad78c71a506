""" Functionality for supporting unit tests. """
__license__ = "3-clause BSD"

import functools

import numpy as np
from numpy.testing import assert_allclose

from rnnlearn.configdefaults import config


def with_floatX(dtype):
    """
    A decorator factory used to run a test under a given `config.floatX`,
    e.g. to compare against finite differences in double precision.
    """
    def decorator(fn):
        # Use functools.wraps so that the test runner still recognizes the
        # returned function as a test.
        @functools.wraps(fn)
        def wrapped(*args, **kwargs):
            orig_floatX = config.floatX
            config.floatX = dtype
            try:
                return fn(*args, **kwargs)
            finally:
                config.floatX = orig_floatX

        return wrapped
    return decorator


def numeric_gradient(function, begin, batch_size, eps=1e-6):
    """
    Central finite-difference estimate of the gradient of
    `function.evaluate` with respect to its parameter vector.

    Parameters
    ----------
    function : object
        Implements `parameters` and `evaluate(parameters, begin,
        batch_size, deterministic)`, e.g. an `RNN`.
    begin : int
        Index of the first example.
    batch_size : int
        Number of examples.
    eps : float, optional
        Perturbation size.

    Returns
    -------
    gradient : ndarray
        Same shape as the parameter vector.
    """
    parameters = function.parameters
    original = parameters.copy()
    gradient = np.zeros_like(parameters)
    try:
        for i in range(parameters.shape[0]):
            parameters[i] = original[i] + eps
            plus = function.evaluate(parameters, begin, batch_size,
                                     deterministic=False)
            parameters[i] = original[i] - eps
            minus = function.evaluate(parameters, begin, batch_size,
                                      deterministic=False)
            parameters[i] = original[i]
            gradient[i] = (plus - minus) / (2. * eps)
    finally:
        parameters[...] = original
    return gradient


def assert_gradient_matches(function, begin, batch_size, rtol=1e-4,
                            atol=1e-7, eps=1e-6):
    """
    Asserts that `function.gradient` agrees with `numeric_gradient`.

    Returns
    -------
    gradient : ndarray
        The analytic gradient.
    """
    numeric = numeric_gradient(function, begin, batch_size, eps=eps)
    analytic = function.gradient(function.parameters, begin, None,
                                 batch_size)
    assert_allclose(analytic, numeric, rtol=rtol, atol=atol)
    return analytic
