"""Timing of training epochs and model saves."""
__license__ = "3-clause BSD"

from contextlib import contextmanager
import datetime
import logging


def format_elapsed(delta):
    """
    Returns `delta` as seconds below a minute and as `H:MM:SS.ffffff`
    above.
    """
    seconds = delta.total_seconds()
    if seconds < 60:
        return '%f seconds' % seconds
    return str(delta)


@contextmanager
def log_timing(logger, task, level=logging.INFO, final_msg=None,
               callbacks=None):
    """
    Logs how long the body of a `with` statement took.

    Parameters
    ----------
    logger : logging.Logger
        Or anything with a `log(level, message)` method.
    task : str or None
        Logged as `'<task>...'` on entry, unless None.
    level : int, optional
        Level of both messages.
    final_msg : str, optional
        Replaces `'<task> done. Time elapsed:'` in the closing message,
        e.g. `'Time this epoch:'` in `rnnlearn.train.Train`.
    callbacks : list of callable, optional
        Each one is called with the elapsed time in seconds.
    """
    if task is not None:
        logger.log(level, '%s...' % task)
    start = datetime.datetime.now()
    yield
    elapsed = datetime.datetime.now() - start
    if final_msg is None:
        final_msg = '%s done. Time elapsed:' % task
    logger.log(level, '%s %s' % (final_msg, format_elapsed(elapsed)))
    for callback in callbacks or ():
        callback(elapsed.total_seconds())
