"""
The main loop run by `rnnlearn-train`: epochs of a training algorithm on
a model and a dataset, with periodic saves of the model.
"""
__license__ = "3-clause BSD"

import logging
import os
import time
import warnings

from rnnlearn.training_algorithms.sgd import SGD
from rnnlearn.utils import serial
from rnnlearn.utils.string_utils import preprocess
from rnnlearn.utils.timing import log_timing

log = logging.getLogger(__name__)


class Train(object):
    """
    Trains `model` on `dataset` with `algorithm`, one epoch per call to
    `algorithm.train`, until `algorithm.continue_learning` returns False.

    Parameters
    ----------
    dataset : `rnnlearn.datasets.sequence.SequenceDataset`
    model : `rnnlearn.models.rnn.RNN`
    algorithm : \
        `rnnlearn.training_algorithms.training_algorithm.TrainingAlgorithm`, \
        optional
        Defaults to `SGD()`.
    save_path : str, optional
        Where the model is pickled. Defaults to
        `${RNNLEARN_TRAIN_FILE_FULL_STEM}.pkl` when `save_freq` is set.
    save_freq : int, optional
        Save every `save_freq` epochs, and once more when training ends.
        0, the default, never saves.
    allow_overwrite : bool, optional
        If False, the first save fails when `save_path` already holds the
        output of another run. Later saves of the same run always replace
        the file.
    """

    def __init__(self, dataset, model, algorithm=None, save_path=None,
                 save_freq=0, allow_overwrite=True):
        self.dataset = dataset
        self.model = model
        self.algorithm = SGD() if algorithm is None else algorithm
        self.save_freq = save_freq
        self.allow_overwrite = allow_overwrite

        if save_path is not None:
            if save_freq == 0:
                warnings.warn("Train got save_path=%r but save_freq=0, so "
                              "the model will never be saved" % save_path)
            save_path = preprocess(save_path)
        elif save_freq > 0:
            save_path = (os.environ['RNNLEARN_TRAIN_FILE_FULL_STEM'] +
                         '.pkl')
        self.save_path = save_path

        self.epochs_seen = 0
        self.training_succeeded = False
        self.training_seconds = []
        self._saved_once = False

    def setup(self):
        """
        Hands the dataset to the algorithm. `main_loop` calls it; call it
        yourself only when driving `algorithm.train` by hand.
        """
        self.algorithm.setup(model=self.model, dataset=self.dataset)

    def main_loop(self, time_budget=None):
        """
        Runs epochs until the algorithm stops or `time_budget` seconds
        have passed, checked before each epoch.

        Parameters
        ----------
        time_budget : int, optional
            Seconds. None means no limit.
        """
        start = time.time()
        self.setup()
        while self.algorithm.continue_learning(self.model):
            elapsed = time.time() - start
            if time_budget is not None and elapsed >= time_budget:
                log.warning("Time budget exceeded (%.3f/%d seconds).",
                            elapsed, time_budget)
                break
            self.run_epoch()
            if self.save_freq > 0 and self.epochs_seen % self.save_freq == 0:
                self.save()
        self.training_succeeded = True
        if self.save_freq > 0:
            self.save()

    def run_epoch(self):
        """
        Runs and times one epoch of the algorithm.
        """
        with log_timing(log, None, final_msg='Time this epoch:',
                        callbacks=[self.training_seconds.append]):
            if self.algorithm.train(dataset=self.dataset) is not None:
                raise ValueError("%s.train returned a value; use "
                                 "continue_learning to decide when training "
                                 "stops" % type(self.algorithm).__name__)
        self.epochs_seen += 1
        log.info("Epochs seen: %d, objective: %s", self.epochs_seen,
                 self.algorithm.objective)

    def save(self):
        """Pickles the model to `save_path`, if any."""
        if self.save_path is None:
            return
        if (not self._saved_once and not self.allow_overwrite and
                os.path.exists(self.save_path)):
            raise IOError("%s already exists and allow_overwrite is False" %
                          self.save_path)
        with log_timing(log, 'Saving to ' + self.save_path):
            serial.save(self.save_path, self.model, on_overwrite='backup')
        self._saved_once = True
