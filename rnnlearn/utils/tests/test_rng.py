"""Tests for rnnlearn.utils.rng."""
import numpy as np
from numpy.testing import assert_array_equal

from rnnlearn.utils.rng import DEFAULT_SEED, make_np_rng


def draws(rng):
    return rng.uniform(size=20)


def test_seeds_and_defaults_agree():
    expected = draws(np.random.RandomState(DEFAULT_SEED))
    for rng in (make_np_rng(DEFAULT_SEED, which_method='uniform'),
                make_np_rng(default_seed=DEFAULT_SEED),
                make_np_rng()):
        assert_array_equal(draws(rng), expected)
    assert_array_equal(draws(make_np_rng(None, default_seed=[1, 2])),
                       draws(np.random.RandomState([1, 2])))


def test_list_and_numpy_integer_seeds():
    assert_array_equal(draws(make_np_rng([2014, 10, 18],
                                         which_method='permutation')),
                       draws(np.random.RandomState([2014, 10, 18])))
    assert_array_equal(draws(make_np_rng(np.int64(7))),
                       draws(np.random.RandomState(7)))


def test_generator_is_reused():
    rng = np.random.RandomState(3)
    assert make_np_rng(rng, which_method=['uniform', 'binomial']) is rng
