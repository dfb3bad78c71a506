#!/usr/bin/env python
"""
Runs the experiment described by a YAML file:

.. code-block:: none

    rnnlearn-train experiment.yaml

The file describes an `rnnlearn.train.Train`, or a list of them that are
run one after the other. While it is loaded, the following variables can
be referenced as `${NAME}`; for `foo/bar.yaml`:

- `RNNLEARN_TRAIN_FILE_FULL_STEM`: `foo/bar`
- `RNNLEARN_TRAIN_DIR`: `foo/`
- `RNNLEARN_TRAIN_BASE_NAME`: `bar.yaml`
- `RNNLEARN_TRAIN_FILE_STEM`: `bar`
- `RNNLEARN_TRAIN_PHASE`: `phase1`, `phase2`, ... while the objects of a
  list run; undefined for a single object.

For instance `save_path: "${RNNLEARN_TRAIN_FILE_FULL_STEM}.pkl"` saves the
model of `foo/bar.yaml` to `foo/bar.pkl`.
"""
__license__ = "3-clause BSD"

import argparse
import gc
import logging
import os

from rnnlearn.utils import is_iterable, serial
from rnnlearn.utils.logger import (CustomFormatter, CustomStreamHandler,
                                   restore_defaults)


def make_argument_parser():
    """
    Returns the ArgumentParser of `rnnlearn-train`.
    """
    parser = argparse.ArgumentParser(
        description="Train a recurrent network described by a YAML file.",
        epilog=__doc__.split('\n', 2)[2],
        formatter_class=argparse.RawTextHelpFormatter)
    parser.add_argument('--level-name', '-L', action='store_true',
                        help='Print the level of every message.')
    parser.add_argument('--timestamp', '-T', action='store_true',
                        help='Print the time of every message.')
    parser.add_argument('--time-budget', '-t', type=int,
                        help='Seconds after which no new epoch is started.')
    parser.add_argument('--verbose-logging', '-V', action='store_true',
                        help='Print time, logger and level of every '
                             'message.')
    parser.add_argument('--debug', '-D', action='store_true',
                        help='Also print DEBUG messages.')
    parser.add_argument('config', help='The YAML file of the experiment.')
    return parser


def configure_logging(level_name=False, timestamp=False,
                      verbose_logging=False, debug=False):
    """
    Moves the console handler from the `rnnlearn` logger to the root
    logger, so that the messages of every library are printed with the
    requested decorations.

    Returns
    -------
    handler : CustomStreamHandler
    """
    restore_defaults()
    if verbose_logging:
        formatter = logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s")
    else:
        prefix = ('%(asctime)s ' if timestamp else '') + \
            ('%(levelname)s ' if level_name else '')
        formatter = CustomFormatter(prefix=prefix, only_from='rnnlearn')
    handler = CustomStreamHandler(formatter=formatter)
    root_logger = logging.getLogger()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return handler


def train(config, level_name=False, timestamp=False, time_budget=None,
          verbose_logging=False, debug=False):
    """
    Loads the object(s) described by the YAML file `config` and runs
    their main loops.

    Parameters
    ----------
    config : str
        Path of the YAML file.
    level_name, timestamp, verbose_logging, debug : bool, optional
        See `configure_logging`.
    time_budget : int, optional
        Seconds given to each main loop.

    Returns
    -------
    train_obj : Train or list of Train
    """
    train_obj = serial.load_train_file(config)
    configure_logging(level_name=level_name, timestamp=timestamp,
                      verbose_logging=verbose_logging, debug=debug)

    if not is_iterable(train_obj):
        train_obj.main_loop(time_budget=time_budget)
        return train_obj

    for phase, subobj in enumerate(train_obj, 1):
        os.environ['RNNLEARN_TRAIN_PHASE'] = 'phase%d' % phase
        subobj.main_loop(time_budget=time_budget)
        # The datasets of finished phases can be large.
        del subobj
        gc.collect()
    return train_obj


def main(argv=None):
    """Entry point of `rnnlearn-train`."""
    args = make_argument_parser().parse_args(argv)
    train(args.config, level_name=args.level_name,
          timestamp=args.timestamp, time_budget=args.time_budget,
          verbose_logging=args.verbose_logging, debug=args.debug)


if __name__ == "__main__":
    main()
