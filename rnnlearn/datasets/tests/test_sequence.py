"""Tests for rnnlearn.datasets.sequence."""
import numpy as np
import pytest

from rnnlearn.configdefaults import config
from rnnlearn.datasets.sequence import SequenceDataset


def test_arrays():
    dataset = SequenceDataset(np.zeros((3, 5, 4)), np.ones((2, 5, 4)))
    assert dataset.num_examples == 5
    assert dataset.num_time_steps == 4
    assert dataset.predictors.dtype == np.dtype(config.floatX)
    assert dataset.responses.dtype == np.dtype(config.floatX)


def test_single_response_step():
    dataset = SequenceDataset(np.zeros((3, 5, 4)), np.ones((1, 5, 1)))
    assert dataset.responses.shape == (1, 5, 1)


def test_npy_paths(tmpdir):
    predictors = np.arange(24.).reshape((2, 3, 4))
    responses = predictors[:1] * 2.
    x_path = str(tmpdir.join('x.npy'))
    y_path = str(tmpdir.join('y.npy'))
    np.save(x_path, predictors)
    np.save(y_path, responses)
    dataset = SequenceDataset(x_path, y_path)
    assert np.all(dataset.predictors == predictors)
    assert np.all(dataset.responses == responses)


def test_npz_archive(tmpdir):
    path = str(tmpdir.join('data.npz'))
    np.savez(path, inputs=np.zeros((1, 2, 3)), targets=np.zeros((1, 2, 3)))
    dataset = SequenceDataset(file=path, predictors_key='inputs',
                              responses_key='targets')
    assert dataset.num_examples == 2
    with pytest.raises(ValueError) as excinfo:
        SequenceDataset(file=path)
    assert 'inputs' in str(excinfo.value)


def test_file_and_arrays_are_exclusive(tmpdir):
    path = str(tmpdir.join('data.npz'))
    np.savez(path, predictors=np.zeros((1, 2, 3)),
             responses=np.zeros((1, 2, 3)))
    with pytest.raises(ValueError):
        SequenceDataset(np.zeros((1, 2, 3)), file=path)


@pytest.mark.parametrize('predictors_shape, responses_shape', [
    ((2, 3), (2, 3)),
    ((2, 3, 4), (2, 2, 4)),
    ((2, 3, 4), (2, 3, 2)),
])
def test_invalid_shapes(predictors_shape, responses_shape):
    with pytest.raises(ValueError):
        SequenceDataset(np.zeros(predictors_shape), np.zeros(responses_shape))


def test_missing_arrays():
    with pytest.raises(ValueError):
        SequenceDataset(np.zeros((1, 1, 1)))
