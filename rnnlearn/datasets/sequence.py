"""Sequence datasets stored as `(feature, example, time_step)` cubes."""
import logging

from rnnlearn.utils import as_floatX
from rnnlearn.utils import serial

logger = logging.getLogger(__name__)


class SequenceDataset(object):
    """
    Predictors and responses of a sequence learning problem.

    Parameters
    ----------
    predictors : ndarray or str, optional
        Rank-3 array `(feature, example, time_step)`, or the path of a
        .npy file holding one.
    responses : ndarray or str, optional
        Rank-3 array with the same number of examples, and either the
        same number of time steps or a single one.
    file : str, optional
        Path of a .npz archive holding both arrays, used instead of the
        two arguments above.
    predictors_key : str, optional
        Name of the predictors in the archive.
    responses_key : str, optional
        Name of the responses in the archive.
    """

    def __init__(self, predictors=None, responses=None, file=None,
                 predictors_key='predictors', responses_key='responses'):
        if file is not None:
            if predictors is not None or responses is not None:
                raise ValueError("Give either file, or predictors and "
                                 "responses, not both")
            archive = serial.load(file)
            try:
                missing = [key for key in (predictors_key, responses_key)
                           if key not in archive.files]
                if missing:
                    raise ValueError("%s has no array named %s; it holds %s"
                                     % (file, ', '.join(missing),
                                        ', '.join(archive.files)))
                predictors = archive[predictors_key]
                responses = archive[responses_key]
            finally:
                archive.close()
        if predictors is None or responses is None:
            raise ValueError("SequenceDataset needs predictors and "
                             "responses")
        if isinstance(predictors, str):
            predictors = serial.load(predictors)
        if isinstance(responses, str):
            responses = serial.load(responses)

        self.predictors = as_floatX(predictors)
        self.responses = as_floatX(responses)
        if self.predictors.ndim != 3 or self.responses.ndim != 3:
            raise ValueError("Predictors and responses must be rank-3 "
                             "(feature, example, time_step) arrays, got "
                             "shapes %s and %s" % (self.predictors.shape,
                                                   self.responses.shape))
        if self.predictors.shape[1] != self.responses.shape[1]:
            raise ValueError("Predictors have %d examples but responses "
                             "have %d" % (self.predictors.shape[1],
                                          self.responses.shape[1]))
        if self.responses.shape[2] not in (1, self.predictors.shape[2]):
            raise ValueError("Predictors have %d time steps but responses "
                             "have %d" % (self.predictors.shape[2],
                                          self.responses.shape[2]))
        logger.debug("Loaded %d sequences of %d steps", self.num_examples,
                     self.num_time_steps)

    @property
    def num_examples(self):
        """Number of sequences."""
        return self.predictors.shape[1]

    @property
    def num_time_steps(self):
        """Length of the sequences."""
        return self.predictors.shape[2]
