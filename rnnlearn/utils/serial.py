"""
Reading and writing of models, datasets and experiment descriptions.

Pickle is the default format. Paths ending in `.npy`, `.npz` or `.txt`
go through numpy instead, and every path may hold `${VAR}` references.
"""
import logging
import os
import pickle
import shutil
import time
import warnings

import numpy as np

from rnnlearn.configdefaults import config
from rnnlearn.utils.exc import reraise_as
from rnnlearn.utils.string_utils import closest_match, preprocess

logger = logging.getLogger(__name__)

# Number of attempts `load` makes on a pickle that is still being written.
LOAD_ATTEMPTS = 10


def load(filepath, retry=True):
    """
    Loads the object stored in `filepath`.

    Parameters
    ----------
    filepath : str
        A pickle file, a `.npy` or `.npz` file, or a `.txt` file that
        `numpy.loadtxt` can read.
    retry : bool, optional
        If True, a truncated pickle is read again after an exponentially
        growing delay, in case a training script is writing it at the same
        time.

    Returns
    -------
    loaded_object : object
    """
    filepath = preprocess(filepath)
    if not os.path.exists(filepath):
        raise_cannot_open(filepath)

    if filepath.endswith(('.npy', '.npz')):
        return np.load(filepath)
    if filepath.endswith('.txt'):
        try:
            return np.loadtxt(filepath)
        except ValueError:
            reraise_as(ValueError("%s cannot be read by numpy.loadtxt" %
                                  filepath))

    attempts = LOAD_ATTEMPTS if retry else 1
    for attempt in range(attempts):
        try:
            with open(filepath, 'rb') as f:
                return pickle.load(f)
        except (pickle.UnpicklingError, EOFError) as e:
            if attempt == attempts - 1:
                reraise_as(type(e)("Failed to unpickle %s after %d "
                                   "attempt(s)" % (filepath, attempts)))
            delay = 0.5 * 2 ** attempt
            logger.info("%s is not readable yet, trying again in %s "
                        "seconds", filepath, delay)
            time.sleep(delay)


def save(filepath, obj, on_overwrite='ignore'):
    """
    Writes `obj` to `filepath`, creating the parent directory if needed.

    Parameters
    ----------
    filepath : str
        Destination. A `.npy` suffix stores `obj` with `numpy.save`, any
        other suffix with pickle and the `pickle_protocol` of
        `rnnlearn.configdefaults.config`.
    obj : object
    on_overwrite : str, optional
        What to do with an existing file:

        - "ignore" : overwrite it.
        - "backup" : move it to `<filepath>.bak` first and delete the
          backup once the new file is written, so that a failed save
          leaves the previous version behind.
    """
    if on_overwrite not in ('ignore', 'backup'):
        raise ValueError("on_overwrite must be 'ignore' or 'backup', got "
                         "%r" % (on_overwrite,))
    filepath = preprocess(filepath)

    directory = os.path.dirname(filepath) or os.curdir
    if not os.path.isdir(directory):
        if os.path.exists(directory):
            raise IOError("Cannot save to %s because %s is not a directory" %
                          (filepath, directory))
        os.makedirs(directory)

    backup = None
    if on_overwrite == 'backup' and os.path.exists(filepath):
        backup = filepath + '.bak'
        shutil.move(filepath, backup)

    _write(filepath, obj)

    if backup is not None:
        try:
            os.remove(backup)
        except OSError as e:
            warnings.warn("Could not remove the backup %s: %s" % (backup, e))


def _write(filepath, obj):
    if filepath.endswith('.npy'):
        np.save(filepath, obj)
        return
    try:
        with open(filepath, 'wb') as f:
            pickle.dump(obj, f, config.pickle_protocol)
    except (pickle.PicklingError, TypeError, AttributeError):
        os.remove(filepath)
        reraise_as(IOError("%s could not be written to %s" %
                           (type(obj).__name__, filepath)))


def train_environment(config_file_path):
    """
    Returns the `RNNLEARN_TRAIN_*` variables describing a YAML file.

    For `foo/bar.yaml`: `RNNLEARN_TRAIN_FILE_FULL_STEM` is `foo/bar`,
    `RNNLEARN_TRAIN_DIR` is `foo/`, `RNNLEARN_TRAIN_BASE_NAME` is
    `bar.yaml` and `RNNLEARN_TRAIN_FILE_STEM` is `bar`.
    """
    full_stem = config_file_path
    if full_stem.endswith('.yaml'):
        full_stem = full_stem[:-len('.yaml')]
    directory = os.path.dirname(config_file_path)
    if directory:
        directory += '/'
    return {'RNNLEARN_TRAIN_FILE_FULL_STEM': full_stem,
            'RNNLEARN_TRAIN_DIR': directory,
            'RNNLEARN_TRAIN_BASE_NAME': os.path.basename(config_file_path),
            'RNNLEARN_TRAIN_FILE_STEM': os.path.basename(full_stem)}


def load_train_file(config_file_path, environ=None):
    """
    Publishes the `train_environment` of `config_file_path` in
    `os.environ`, then builds the objects the file describes.

    Parameters
    ----------
    config_file_path : str
        A YAML file, usually describing an `rnnlearn.train.Train`.
    environ : dict, optional
        `${VAR}` values taking precedence over `os.environ`.

    Returns
    -------
    obj : object
    """
    from rnnlearn.config import yaml_parse

    os.environ.update(train_environment(config_file_path))
    return yaml_parse.load_path(config_file_path, environ=environ)


def raise_cannot_open(path):
    """
    Raises an IOError explaining why `path` cannot be opened.

    The message names the deepest existing directory on the way to
    `path` and, when that directory is small, the entry that looks most
    like the missing one.

    Parameters
    ----------
    path : str
        A path that does not exist.
    """
    missing = os.path.normpath(path)
    parent = os.path.dirname(missing)
    while parent and not os.path.exists(parent):
        missing, parent = parent, os.path.dirname(parent)
    if not parent:
        parent = os.curdir
    if os.path.islink(path):
        raise IOError("%s appears to be a symlink to a non-existent file" %
                      path)
    if not os.path.isdir(parent):
        raise IOError("Cannot open %s because %s is not a directory." %
                      (path, parent))
    candidates = os.listdir(parent)
    if not candidates:
        raise IOError("Cannot open %s because %s is empty." % (path, parent))
    if len(candidates) > 100:
        raise IOError("Cannot open %s but can open %s." % (path, parent))
    bad = os.path.basename(missing)
    raise IOError("Cannot open %s but can open %s. Did you mean %s instead "
                  "of %s?" % (path, parent, closest_match(bad, candidates),
                              bad))
