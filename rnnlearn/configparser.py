"""
Typed configuration variables, overridable through the `RNNLEARN_FLAGS`
environment variable.

`RNNLEARN_FLAGS` is a comma-separated list of `key=value` pairs, e.g.::

    RNNLEARN_FLAGS=floatX=float32,pickle_protocol=2

Variables are registered with `AddConfigVar` (see
`rnnlearn.configdefaults`) and read as attributes of `config`.
"""
__license__ = "3-clause BSD"

import logging
import os
import warnings

logger = logging.getLogger(__name__)


class ConfigWarning(Warning):
    """Warning raised for malformed configuration strings."""


def parse_config_string(config_string, issue_warnings=True):
    """
    Returns the `{key: value}` dict of a `key=value,key=value` string.
    The last value of a repeated key wins.
    """
    config_dict = {}
    for item in config_string.split(','):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition('=')
        if not sep:
            if issue_warnings:
                warnings.warn("Config key '%s' has no value, ignoring it" %
                              key, ConfigWarning, stacklevel=2)
            continue
        config_dict[key] = value
    return config_dict


RNNLEARN_FLAGS_DICT = parse_config_string(os.getenv('RNNLEARN_FLAGS', ''))


class RnnlearnConfigParser(object):
    """
    Holds the registered variables as `ConfigParam` descriptors of its
    class, in registration order in `params`.
    """
    params = []

    def __str__(self):
        return '\n'.join('%s (%s)\n    Doc:  %s\n    Value:  %s\n' %
                         (param.fullname, type(param).__name__, param.doc,
                          getattr(self, param.fullname))
                         for param in self.params)


config = RnnlearnConfigParser()


class ConfigParam(object):
    """
    A configuration variable. Its value is, by order of precedence, the
    last one assigned, the one in `RNNLEARN_FLAGS`, or `default`.

    Parameters
    ----------
    default : object or callable
        The default value, or a callable returning it.
    filter : callable, optional
        Converts a candidate value, typically a string from
        `RNNLEARN_FLAGS`, and raises ValueError if it is invalid.
    allow_override : bool, optional
        If False, the value can't be assigned once it has been read.
    """

    fullname = None
    doc = None

    def __init__(self, default, filter=None, allow_override=True):
        self.default = default
        self.filter = filter
        self.allow_override = allow_override

    def __get__(self, instance, owner=None):
        if not hasattr(self, 'val'):
            if self.fullname in RNNLEARN_FLAGS_DICT:
                value = RNNLEARN_FLAGS_DICT[self.fullname]
            elif callable(self.default):
                value = self.default()
            else:
                value = self.default
            self.__set__(instance, value)
        return self.val

    def __set__(self, instance, value):
        if hasattr(self, 'val') and not self.allow_override:
            raise AttributeError("%s can't be changed once it has been read"
                                 % self.fullname)
        self.val = value if self.filter is None else self.filter(value)


class EnumStr(ConfigParam):
    """
    A string taking one of the given values. The first one is the default.
    """

    def __init__(self, default, *options, **kwargs):
        self.all = (default,) + options
        super(EnumStr, self).__init__(default, self._check, **kwargs)

    def _check(self, value):
        if value not in self.all:
            raise ValueError('Invalid value ("%s") for configuration '
                             'variable "%s". Valid options are %s' %
                             (value, self.fullname, self.all))
        return value


class TypedParam(ConfigParam):
    """
    A value cast to `mytype` and accepted if `is_valid` returns True.
    """

    def __init__(self, default, mytype, is_valid=None, allow_override=True):
        self.mytype = mytype
        self.is_valid = is_valid
        super(TypedParam, self).__init__(default, self._cast,
                                         allow_override=allow_override)

    def _cast(self, value):
        cast = self.mytype(value)
        if self.is_valid is not None and not self.is_valid(cast):
            raise ValueError('Invalid value (%s) for configuration variable '
                             '"%s".' % (value, self.fullname))
        return cast


def IntParam(default, is_valid=None, allow_override=True):
    return TypedParam(default, int, is_valid, allow_override=allow_override)


def AddConfigVar(name, doc, configparam, root=config):
    """
    Registers `configparam` on `root` under `name`, which is also its key
    in `RNNLEARN_FLAGS`.

    The value is read right away, so a bad `RNNLEARN_FLAGS` entry fails
    when rnnlearn is imported rather than in the middle of a run.
    """
    if hasattr(type(root), name):
        raise AttributeError('This name is already taken', name)
    configparam.fullname = name
    configparam.doc = doc
    configparam.__get__(root, type(root))
    setattr(type(root), name, configparam)
    type(root).params.append(configparam)
