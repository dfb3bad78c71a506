import numpy as np
import pytest
from numpy.testing import assert_equal, assert_allclose

from rnnlearn.configdefaults import config
from rnnlearn.initialization import (Constant, IsotropicGaussian, Uniform,
                                     RandomInitialization,
                                     NdarrayInitialization)


@pytest.mark.parametrize('const, ground_truth', [
    (5, 5 * np.ones((5, 5))),
    ([1, 2, 3], np.array([[1, 2, 3]] * 7)),
    (np.array([[1], [2], [3]]), np.array([[1, 1], [2, 2], [3, 3]])),
])
def test_constant(const, ground_truth):
    # rng unused, so pass None.
    init = Constant(const).initialize(None, ground_truth.shape)
    assert init.dtype == config.floatX
    assert ground_truth.shape == init.shape
    assert_equal(ground_truth, init)


def test_constant_not_broadcastable():
    with pytest.raises(ValueError):
        Constant([1, 2]).initialize(None, (3, 3))


@pytest.mark.parametrize('mean, std, shape', [(0, 1, (500, 600)),
                                              (5, 3, (600, 500))])
def test_gaussian(mean, std, shape):
    rng = np.random.RandomState([2014, 1, 20])
    weights = IsotropicGaussian(mean, std).initialize(rng, shape)
    assert weights.shape == shape
    assert weights.dtype == config.floatX
    assert_allclose(weights.mean(), mean, atol=1e-2)
    assert_allclose(weights.std(), std, atol=1e-2)


@pytest.mark.parametrize('mean, width, std, shape', [
    (0, 0.05, None, (500, 600)),
    (0, None, 0.001, (600, 500)),
    (5, None, 0.004, (700, 300)),
])
def test_uniform(mean, width, std, shape):
    rng = np.random.RandomState([2014, 1, 20])
    weights = Uniform(mean=mean, width=width,
                      std=std).initialize(rng, shape)
    assert weights.shape == shape
    assert weights.dtype == config.floatX
    assert_allclose(weights.mean(), mean, atol=1e-2)
    if width is not None:
        std_ = width / np.sqrt(12)
    else:
        std_ = std
    assert_allclose(std_, weights.std(), atol=1e-2)


def test_uniform_needs_exactly_one_of_width_and_std():
    with pytest.raises(ValueError):
        Uniform()
    with pytest.raises(ValueError):
        Uniform(width=1., std=1.)


def test_random_initialization_bounds():
    rng = np.random.RandomState([2014, 1, 20])
    values = RandomInitialization().initialize(rng, (10000,))
    assert values.min() >= -1.
    assert values.max() <= 1.
    assert_allclose(values.mean(), 0., atol=3e-2)

    values = RandomInitialization(2., 3.).initialize(rng, (100,))
    assert values.min() >= 2.
    assert values.max() <= 3.


def test_random_initialization_is_seeded():
    a = RandomInitialization().initialize(np.random.RandomState(1), (7,))
    b = RandomInitialization().initialize(np.random.RandomState(1), (7,))
    assert_equal(a, b)


def test_base_class_is_abstract():
    with pytest.raises(NotImplementedError):
        NdarrayInitialization().initialize(None, (2,))


def test_str():
    assert str(Constant(3)) == "Constant(3)"
    assert str(Uniform(width=2.)) == "Uniform(width=2.0)"
    assert str(RandomInitialization()) == \
        "RandomInitialization(lower=-1.0, upper=1.0)"
