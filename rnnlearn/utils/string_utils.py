"""
Substitution of `${VAR}` references in paths and YAML strings, and
"did you mean" suggestions for misspelled names.
"""
import difflib
import os
import re

from rnnlearn.utils.exc import EnvironmentVariableError

VARIABLE_REGEXP = re.compile(r'\$\{([^}]*)\}')


def preprocess(string, environ=None):
    """
    Replaces every `${VARNAME}` of `string` by the value of the variable
    and expands a leading `~`.

    Parameters
    ----------
    string : str
        E.g. `'${RNNLEARN_TRAIN_FILE_FULL_STEM}.pkl'`.
    environ : dict, optional
        Looked up before `os.environ`.

    Returns
    -------
    rval : str
        The substituted string.
    """
    if environ is None:
        environ = {}
    if '${' in VARIABLE_REGEXP.sub('', string):
        raise ValueError('Unclosed ${ in "%s"' % string)

    def substitute(found):
        name = found.group(1)
        if name in environ:
            return str(environ[name])
        if name in os.environ:
            return os.environ[name]
        if name.startswith('RNNLEARN_TRAIN'):
            raise EnvironmentVariableError(
                '%s is only defined while a YAML file is run through '
                'rnnlearn-train' % name)
        known = list(os.environ.keys()) + list(environ.keys())
        raise ValueError('Unrecognized environment variable "%s". Did you '
                         'mean %s?' % (name, closest_match(name, known)))

    return os.path.expanduser(VARIABLE_REGEXP.sub(substitute, string))


def closest_match(wrong, candidates):
    """
    Returns the candidate that looks most like `wrong`, ignoring case.

    Meant for short lists of identifiers: keyword arguments, attributes
    of a module, files of a directory.

    Parameters
    ----------
    wrong : str
        The misspelled name.
    candidates : iterable of str
        The valid names.

    Returns
    -------
    best : str
    """
    candidates = [candidate for candidate in candidates if candidate]
    if not candidates:
        raise ValueError("No candidate to match %r against" % wrong)

    def similarity(candidate):
        return difflib.SequenceMatcher(None, wrong.lower(),
                                       candidate.lower()).ratio()

    return max(candidates, key=similarity)
