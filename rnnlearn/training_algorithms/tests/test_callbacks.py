"""
Tests for the per-epoch callbacks of TrainingAlgorithm.optimize.
"""
import logging

import numpy as np
import pytest

from rnnlearn.models.tests.test_rnn import make_sequences, make_tanh_rnn
from rnnlearn.testing import with_floatX
from rnnlearn.training_algorithms.bgd import BatchGradientDescent
from rnnlearn.training_algorithms.callbacks import (Callback, EarlyStopping,
                                                    EpochCounter,
                                                    LogObjective)
from rnnlearn.training_algorithms.sgd import SGD
from rnnlearn.training_algorithms.tests.test_sgd import (CENTERS,
                                                         QuadraticFunction)


class Recorder(object):
    def __init__(self):
        self.calls = []

    def __call__(self, function, parameters, objective):
        self.calls.append((function, parameters.copy(), objective))


def unbounded_sgd():
    # Neither the tolerance nor the iteration budget ever ends the run.
    return SGD(learning_rate=0.1, batch_size=4, max_iterations=0,
               tolerance=0., shuffle=False)


def test_epoch_counter_ends_optimization():
    function = QuadraticFunction(CENTERS)
    parameters = np.array([10., -10.])
    recorder = Recorder()
    sgd = unbounded_sgd()
    sgd.optimize(function, parameters, callbacks=[EpochCounter(3), recorder])
    assert sgd.epochs == 3
    # Callbacks after the one that stops still see the last epoch.
    assert len(recorder.calls) == 3
    objectives = [call[2] for call in recorder.calls]
    assert objectives[0] > objectives[1] > objectives[2]
    assert all(call[0] is function for call in recorder.calls)


def test_callbacks_get_the_updated_parameters():
    function = QuadraticFunction([[1., -1.]])
    parameters = np.array([3., 3.])
    recorder = Recorder()
    SGD(learning_rate=0.1, batch_size=1, max_iterations=1,
        shuffle=False).optimize(function, parameters, callbacks=[recorder])
    assert len(recorder.calls) == 1
    np.testing.assert_allclose(recorder.calls[0][1], parameters)
    assert recorder.calls[0][2] == pytest.approx(10.)


def test_plain_functions_can_stop():
    function = QuadraticFunction(CENTERS)
    sgd = unbounded_sgd()
    sgd.optimize(function, np.zeros(2),
                 callbacks=[lambda f, p, objective: objective < 15.])
    assert sgd.epochs >= 1
    assert sgd.objective < 15.


def test_early_stopping_countdown():
    stopper = EarlyStopping(prop_decrease=0.1, N=2)
    assert not stopper(None, None, 10.)
    assert not stopper(None, None, 8.5)
    # 8. is not 10% below the best objective, 8.5.
    assert not stopper(None, None, 8.)
    assert stopper(None, None, 8.)
    assert stopper.best_objective == 8.
    stopper.reset()
    assert stopper.best_objective == np.inf
    assert not stopper(None, None, 8.)


def test_early_stopping_ends_optimization():
    function = QuadraticFunction(CENTERS)
    parameters = np.array([10., -10.])
    sgd = unbounded_sgd()
    objective = sgd.optimize(function, parameters,
                             callbacks=[EarlyStopping(prop_decrease=.01,
                                                      N=3)])
    assert sgd.epochs < 100
    # The minimum of the objective is 14, reached at the mean of CENTERS.
    assert objective == pytest.approx(14., abs=0.5)


def test_callbacks_are_reset_between_runs():
    counter = EpochCounter(2)
    for _ in range(2):
        sgd = unbounded_sgd()
        sgd.optimize(QuadraticFunction(CENTERS), np.zeros(2),
                     callbacks=[counter])
        assert sgd.epochs == 2


def test_log_objective(caplog):
    caplog.set_level(logging.INFO)
    logging.getLogger('rnnlearn').propagate = True
    try:
        unbounded_sgd().optimize(QuadraticFunction(CENTERS), np.zeros(2),
                                 callbacks=[LogObjective(),
                                            EpochCounter(2)])
    finally:
        logging.getLogger('rnnlearn').propagate = False
    messages = [record.getMessage() for record in caplog.records
                if record.name == 'rnnlearn.training_algorithms.callbacks']
    assert len(messages) == 2
    assert messages[1].startswith('Epoch 2: objective ')


def test_batch_gradient_descent_runs_callbacks():
    recorder = Recorder()
    bgd = BatchGradientDescent(max_iterations=0, tolerance=0.)
    bgd.optimize(QuadraticFunction(CENTERS), np.zeros(2),
                 callbacks=[recorder, EpochCounter(4)])
    assert bgd.iterations == 4
    assert len(recorder.calls) == 4


@with_floatX('float64')
def test_rnn_train_with_callbacks():
    rng = np.random.RandomState([2014, 10, 20])
    predictors, responses = make_sequences(rng, 2, 8, 4)
    model = make_tanh_rnn(2)
    recorder = Recorder()
    sgd = SGD(learning_rate=0.01, batch_size=4, max_iterations=0,
              tolerance=0.)
    objective = model.train(predictors, responses, optimizer=sgd,
                            callbacks=[recorder, EpochCounter(2)])
    assert sgd.epochs == 2
    assert [call[0] for call in recorder.calls] == [model, model]
    np.testing.assert_allclose(recorder.calls[-1][1], model.parameters)
    assert np.isfinite(objective)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        EpochCounter(0)
    with pytest.raises(ValueError):
        EarlyStopping(N=0)
    with pytest.raises(NotImplementedError):
        Callback()(None, None, 0.)
