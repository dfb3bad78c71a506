import numpy as np
import pytest
from numpy.testing import assert_allclose

from rnnlearn.training_algorithms.learning_rule import (AdaGrad, Momentum,
                                                        RMSProp)


# used by all learning rule tests
shapes = [(1,), (9,), (56,)]
learning_rate = .001


def make_vectors(shape, seed=0):
    rng = np.random.RandomState(seed)
    return rng.uniform(-1, 1, shape), rng.uniform(-1, 1, shape)


@pytest.mark.parametrize('shape', shapes)
def test_momentum(shape):
    """
    Make sure that learning_rule.Momentum obtains the same parameter values
    as a hand-crafted momentum implementation.
    """
    parameters, gradient = make_vectors(shape)
    manual = parameters.copy()
    momentum = 0.5
    rule = Momentum(momentum)

    inc = -learning_rate * gradient
    manual += inc
    rule.update(parameters, gradient, learning_rate)
    assert_allclose(parameters, manual)

    inc = momentum * inc - learning_rate * gradient
    manual += inc
    rule.update(parameters, gradient, learning_rate)
    assert_allclose(parameters, manual)


@pytest.mark.parametrize('shape', shapes)
def test_nesterov_momentum(shape):
    parameters, gradient = make_vectors(shape)
    manual = parameters.copy()
    momentum = 0.5
    rule = Momentum(momentum, nesterov_momentum=True)
    rule.update(parameters, gradient, learning_rate)
    inc = -learning_rate * gradient
    assert_allclose(parameters,
                    manual + momentum * inc - learning_rate * gradient)


@pytest.mark.parametrize('shape', shapes)
def test_adagrad(shape):
    """
    Make sure that learning_rule.AdaGrad obtains the same parameter values
    as a hand-crafted AdaGrad implementation.
    """
    parameters, gradient = make_vectors(shape)
    manual = parameters.copy()
    eps = 1e-6
    rule = AdaGrad(eps)
    sum_square_grad = np.zeros(shape)
    for _ in range(3):
        sum_square_grad += gradient ** 2
        manual -= learning_rate * gradient / np.sqrt(sum_square_grad + eps)
        rule.update(parameters, gradient, learning_rate)
    assert_allclose(parameters, manual)


@pytest.mark.parametrize('shape', shapes)
def test_rmsprop(shape):
    """
    Make sure that learning_rule.RMSProp obtains the same parameter values
    as a hand-crafted RMSProp implementation.
    """
    parameters, gradient = make_vectors(shape)
    manual = parameters.copy()
    decay = 0.9
    max_scaling = 1e5
    rule = RMSProp(decay, max_scaling)
    mean_square_grad = np.zeros(shape)
    for _ in range(3):
        mean_square_grad = (decay * mean_square_grad +
                            (1 - decay) * gradient ** 2)
        rms_grad = np.maximum(np.sqrt(mean_square_grad), 1. / max_scaling)
        manual -= learning_rate * gradient / rms_grad
        rule.update(parameters, gradient, learning_rate)
    assert_allclose(parameters, manual)


def test_reset_forgets_state():
    parameters, gradient = make_vectors((4,))
    for rule, name in [(Momentum(0.9), 'inc'),
                       (AdaGrad(), 'sum_square_grad'),
                       (RMSProp(), 'mean_square_grad')]:
        rule.update(parameters, gradient, learning_rate)
        assert getattr(rule, name) is not None
        rule.reset()
        assert getattr(rule, name) is None


def test_state_follows_parameter_shape():
    rule = AdaGrad()
    rule.update(np.zeros(3), np.ones(3), learning_rate)
    parameters = np.zeros(5)
    rule.update(parameters, np.ones(5), learning_rate)
    assert rule.sum_square_grad.shape == (5,)


@pytest.mark.parametrize('make_rule', [lambda: Momentum(1.),
                                       lambda: Momentum(-0.1),
                                       lambda: RMSProp(decay=1.),
                                       lambda: RMSProp(max_scaling=0.)])
def test_invalid_hyperparameters(make_rule):
    with pytest.raises(ValueError):
        make_rule()
