"""
Tests for rnnlearn.utils helpers.
"""
import numpy as np
import pytest

from rnnlearn.utils import (as_floatX, is_iterable, safe_zip, wraps,
                            py_integer_types)
from rnnlearn.configdefaults import config
from rnnlearn.utils.exc import reraise_as


def test_is_iterable():
    assert is_iterable([1])
    assert is_iterable(x for x in range(2))
    assert not is_iterable(3)


def test_safe_zip():
    assert list(safe_zip([1, 2], 'ab')) == [(1, 'a'), (2, 'b')]
    with pytest.raises(ValueError):
        safe_zip([1, 2], [1])


def test_as_floatX():
    assert as_floatX([1, 2]).dtype == np.dtype(config.floatX)


def test_py_integer_types():
    assert isinstance(np.int32(1), py_integer_types)
    assert not isinstance(1.5, py_integer_types)


def test_wraps_concatenates_docstrings():
    def parent():
        """Parent doc."""

    @wraps(parent)
    def child():
        """ Child notes."""

    assert child.__doc__ == "Parent doc. Child notes."
    assert child.__name__ == 'parent'


def test_reraise_as_keeps_original_message():
    with pytest.raises(IOError) as excinfo:
        try:
            raise KeyError('missing')
        except KeyError:
            reraise_as(IOError("could not load"))
    message = str(excinfo.value)
    assert message.startswith('could not load')
    assert 'KeyError' in message and 'missing' in message


def test_wraps_can_append():
    def parent():
        """Parent doc."""

    @wraps(parent, append=True)
    def child():
        """Child notes. """

    assert child.__doc__ == "Child notes. Parent doc."
