"""Exceptions raised by the rnnlearn utilities."""
import sys


class EnvironmentVariableError(Exception):
    """
    A `${RNNLEARN_TRAIN_*}` reference was resolved outside of a run of
    `rnnlearn-train`, the only place these variables are defined.
    """


def reraise_as(new_exc):
    """
    Raises `new_exc` from the exception currently being handled.

    The type and arguments of the handled exception are appended to the
    message of `new_exc`, so that they survive even when only the last
    exception of the chain is displayed.

    Parameters
    ----------
    new_exc : Exception or str
        The exception to raise. A string builds an exception of the same
        type as the handled one.

    Examples
    --------
    >>> try:
    >>>     pickle.dump(model, f)
    >>> except pickle.PicklingError:
    >>>     reraise_as(IOError("%s could not be written" % path))
    """
    exc_type, exc_value, traceback = sys.exc_info()
    if isinstance(new_exc, str):
        new_exc = exc_type(new_exc)

    message = ', '.join(str(arg) for arg in new_exc.args)
    message += '\n\nOriginal exception:\n\t' + exc_type.__name__
    original_args = getattr(exc_value, 'args', ())
    if original_args:
        message += ': ' + ', '.join(str(arg) for arg in original_args)
    new_exc.args = (message,) + tuple(new_exc.args[1:])
    raise new_exc.with_traceback(traceback) from exc_value
