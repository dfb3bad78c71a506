"""
Console logging for rnnlearn.

Progress messages (INFO, and DEBUG when asked for) go to stdout, problems
(WARNING and above) go to stderr. Importing `rnnlearn` calls
`configure_custom`; applications that manage logging themselves call
`restore_defaults` to hand the `rnnlearn` loggers back to the root logger.
"""
__license__ = "3-clause BSD"

import logging
import sys

PACKAGE = __name__.split('.')[0]


class CustomFormatter(logging.Formatter):
    """
    Prints INFO records bare, e.g. `SGD: epoch 3, objective 0.125000`, and
    tags every other record with its level and logger, e.g.
    `WARNING (rnnlearn.training_algorithms.sgd): ...`.

    Parameters
    ----------
    prefix : str, optional
        Format string put in front of every line, e.g. `'%(asctime)s '`.
    only_from : str, optional
        When given, INFO records are only printed bare if their logger
        name starts with it. INFO records of other libraries get tagged.
    """

    def __init__(self, prefix='', only_from=None):
        super(CustomFormatter, self).__init__(prefix + "%(message)s")
        self._tagged = logging.Formatter(
            prefix + "%(levelname)s (%(name)s): %(message)s")
        self.only_from = only_from

    def format(self, record):
        bare = record.levelno == logging.INFO and \
            (self.only_from is None or record.name.startswith(self.only_from))
        if bare:
            return super(CustomFormatter, self).format(record)
        return self._tagged.format(record)


class CustomStreamHandler(logging.Handler):
    """
    Writes DEBUG and INFO records to `stdout` and the others to `stderr`.

    Parameters
    ----------
    stdout : file-like object, optional
        Defaults to whatever `sys.stdout` is when a record is emitted.
    stderr : file-like object, optional
        Defaults to whatever `sys.stderr` is when a record is emitted.
    formatter : logging.Formatter, optional
        Typically a `CustomFormatter`.

    Notes
    -----
    Leave the streams to None rather than passing `sys.stdout`: pytest's
    output capturing replaces the `sys` streams after this handler is
    built.
    """

    def __init__(self, stdout=None, stderr=None, formatter=None):
        super(CustomStreamHandler, self).__init__()
        self._stdout = stdout
        self._stderr = stderr
        self.setFormatter(formatter)

    def stream_for(self, record):
        """
        Returns the stream `record` is written to.
        """
        if record.levelno > logging.INFO:
            return sys.stderr if self._stderr is None else self._stderr
        return sys.stdout if self._stdout is None else self._stdout

    def emit(self, record):
        try:
            stream = self.stream_for(record)
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def _remove_handlers(logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


def configure_custom(debug=False, stdout=None, stderr=None):
    """
    Installs a single `CustomStreamHandler` on the `rnnlearn` logger.

    Calling it again replaces the handler, so it can be used to switch
    DEBUG messages on and off.

    Parameters
    ----------
    debug : bool, optional
        Also print DEBUG messages, e.g. the step sizes tried by
        `BatchGradientDescent`.
    stdout, stderr : file-like object, optional
        See `CustomStreamHandler`.
    """
    logger = logging.getLogger(PACKAGE)
    logger.propagate = False
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    _remove_handlers(logger)
    logger.addHandler(CustomStreamHandler(stdout=stdout, stderr=stderr,
                                          formatter=CustomFormatter()))


def restore_defaults():
    """
    Undoes `configure_custom`: the `rnnlearn` logger gets no handler and
    no level of its own and propagates to the root logger again.
    """
    logger = logging.getLogger(PACKAGE)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _remove_handlers(logger)
