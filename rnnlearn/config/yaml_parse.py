"""
Loading of experiment descriptions written in YAML.

On top of plain YAML, a description may use

* `!obj:dotted.path { keyword: value, ... }` to build an object, e.g. an
  `rnnlearn.models.rnn.RNN` or an `rnnlearn.train.Train`,
* `!pkl: 'path'` to load a file with `rnnlearn.utils.serial.load`,
* `!import:dotted.path` or `!import 'dotted.path'` for any importable
  name, e.g. an activation class,
* `!float` and bare scientific notation such as `1e-3`, which YAML 1.1
  reads as a string,
* `${VAR}` inside any string, replaced from the environment when the
  objects are built.

Parsing first produces a graph of `Proxy` objects; building calls them
bottom-up. YAML anchors and aliases therefore share the built object.
"""
import importlib
import inspect
import logging
import re

import yaml

from rnnlearn.utils import serial
from rnnlearn.utils.exc import reraise_as
from rnnlearn.utils.string_utils import closest_match, preprocess

SCIENTIFIC_NOTATION_REGEXP = r'^[\-\+]?(\d+\.?\d*|\d*\.?\d+)?[eE][\-\+]?\d+$'

logger = logging.getLogger(__name__)


class Proxy(object):
    """
    An object described by the YAML file but not built yet.

    Parameters
    ----------
    callable : callable
        Class or function building the object.
    keywords : dict
        Its keyword arguments. Values may be (or contain) other proxies.
    yaml_src : str, optional
        The YAML text of the node, attached to the built object as
        `yaml_src` when it accepts new attributes.
    """
    __slots__ = ('callable', 'keywords', 'yaml_src')

    def __init__(self, callable, keywords, yaml_src=None):
        self.callable = callable
        self.keywords = keywords
        self.yaml_src = yaml_src

    def __repr__(self):
        return "Proxy(%s, %s)" % (getattr(self.callable, '__name__',
                                          self.callable),
                                  sorted(self.keywords))


class RnnlearnLoader(yaml.SafeLoader):
    """
    A `yaml.SafeLoader` that knows the tags of this module.
    """


def load(stream, environ=None, instantiate=True):
    """
    Loads an experiment description.

    Parameters
    ----------
    stream : str or file-like object
        The YAML text, or anything with a `read` method.
    environ : dict, optional
        Used for `${VAR}` substitutions before `os.environ`.
    instantiate : bool, optional
        If False, return the graph of `Proxy` objects instead of building
        it.

    Returns
    -------
    graph : object
        The top-level object, usually a `Train` or a dict.
    """
    if not isinstance(stream, str):
        stream = stream.read()
    graph = yaml.load(stream, Loader=RnnlearnLoader)
    if not instantiate:
        return graph
    return build(graph, environ)


def load_path(path, environ=None, instantiate=True):
    """
    Loads the experiment description stored in the file `path`.

    See `load` for the other parameters.
    """
    with open(path, 'r') as f:
        content = f.read()
    return load(content, environ=environ, instantiate=instantiate)


def build(graph, environ=None, built=None):
    """
    Builds every `Proxy` of `graph`, children first, and substitutes the
    `${VAR}` references of every string.

    Parameters
    ----------
    graph : object
        A `Proxy`, or a list or dict holding some.
    environ : dict, optional
        See `load`.
    built : dict, optional
        Maps the proxies built so far to their object.

    Returns
    -------
    obj : object
    """
    if built is None:
        built = {}
    if isinstance(graph, Proxy):
        if graph not in built:
            built[graph] = _build_proxy(graph, environ, built)
        return built[graph]
    if isinstance(graph, dict):
        return dict((build(key, environ, built), build(value, environ, built))
                    for key, value in graph.items())
    if isinstance(graph, list):
        return [build(item, environ, built) for item in graph]
    if isinstance(graph, str):
        return preprocess(graph, environ)
    return graph


def _build_proxy(proxy, environ, built):
    kwargs = dict((name, build(value, environ, built))
                  for name, value in proxy.keywords.items())
    obj = call_with_keywords(proxy.callable, kwargs)
    try:
        obj.yaml_src = proxy.yaml_src
    except AttributeError:
        # ndarrays, tuples, builtins.
        pass
    return obj


def call_with_keywords(to_call, kwargs):
    """
    Returns `to_call(**kwargs)`. When the call fails with a TypeError
    caused by unknown or missing keywords, a TypeError naming them, with
    a suggestion for each misspelled one, is raised instead.

    Parameters
    ----------
    to_call : callable
        A class or a function.
    kwargs : dict
        Keyword arguments.
    """
    try:
        return to_call(**kwargs)
    except TypeError:
        check_keywords(to_call, kwargs)
        raise


def check_keywords(to_call, kwargs):
    """
    Raises a TypeError if `kwargs` has keywords `to_call` does not accept,
    or lacks some it requires.
    """
    name = getattr(to_call, '__name__', str(to_call))
    try:
        parameters = inspect.signature(to_call).parameters
    except (TypeError, ValueError):
        # Some builtins have no introspectable signature.
        return

    kinds = set(p.kind for p in parameters.values())
    if inspect.Parameter.VAR_KEYWORD not in kinds:
        unknown = [key for key in kwargs if key not in parameters]
        if unknown:
            accepted = list(parameters)
            if accepted:
                hint = 'Did you mean %s?' % ', '.join(
                    closest_match(key, accepted) for key in unknown)
            else:
                hint = 'It does not take any keyword.'
            raise TypeError('%s does not support the following keywords: '
                            '%s. %s' % (name, ', '.join(unknown), hint))

    named = (inspect.Parameter.POSITIONAL_OR_KEYWORD,
             inspect.Parameter.KEYWORD_ONLY)
    missing = [p.name for p in parameters.values()
               if p.kind in named and p.default is inspect.Parameter.empty
               and p.name not in kwargs]
    if missing:
        raise TypeError('%s did not get these expected arguments: %s' %
                        (name, ', '.join(missing)))


def import_dotted(path):
    """
    Returns the object named by a dotted path such as
    `rnnlearn.models.rnn.RNN`.
    """
    if '.' not in path:
        raise yaml.YAMLError("%r is not a dotted path" % path)
    module_name, field = path.rsplit('.', 1)
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        prefix = _importable_prefix(module_name)
        if prefix is None:
            reraise_as(ImportError("Could not import %s" % module_name))
        reraise_as(ImportError("Could not import %s but could import %s" %
                               (module_name, prefix)))
    try:
        return getattr(module, field)
    except AttributeError:
        reraise_as(AttributeError("Could not evaluate %s. Did you mean %s?" %
                                  (path, closest_match(field, dir(module)))))


def _importable_prefix(module_name):
    parts = module_name.split('.')
    for stop in range(len(parts) - 1, 0, -1):
        prefix = '.'.join(parts[:stop])
        try:
            importlib.import_module(prefix)
        except ImportError:
            continue
        return prefix
    return None


def check_unique_keys(node):
    """
    Raises a ConstructorError when a mapping node repeats a key. PyYAML
    silently keeps the last value otherwise.
    """
    if not isinstance(node, yaml.nodes.MappingNode):
        raise yaml.constructor.ConstructorError(
            None, None, "expected a mapping node, but found %s" % node.id,
            node.start_mark)
    seen = set()
    for key_node, _ in node.value:
        if not isinstance(key_node, yaml.nodes.ScalarNode):
            continue
        if key_node.value in seen:
            raise yaml.constructor.ConstructorError(
                "while constructing a mapping", node.start_mark,
                "found duplicate key (%s)" % key_node.value)
        seen.add(key_node.value)


def construct_obj(loader, tag_suffix, node):
    """Handles `!obj:dotted.path { ... }`."""
    yaml_src = yaml.serialize(node)
    check_unique_keys(node)
    keywords = loader.construct_mapping(node, deep=True)
    for key in keywords:
        if not isinstance(key, str):
            raise TypeError("Keyword %r of !obj:%s is not a string" %
                            (key, tag_suffix))
    return Proxy(import_dotted(tag_suffix), keywords, yaml_src)


def construct_pkl(loader, tag_suffix, node):
    """Handles `!pkl: 'path'`. The file is loaded when the graph is built."""
    if tag_suffix != "":
        raise yaml.YAMLError('Expected a space between !pkl: and the path, '
                             'got !pkl:%s' % tag_suffix)
    path = loader.construct_yaml_str(node)
    return Proxy(serial.load, {'filepath': path}, yaml.serialize(node))


def construct_import_suffix(loader, tag_suffix, node):
    """Handles `!import:dotted.path`."""
    return import_dotted(tag_suffix)


def construct_import(loader, node):
    """Handles `!import 'dotted.path'`."""
    return import_dotted(loader.construct_scalar(node))


def construct_float(loader, node):
    """Handles `!float '1e-3'` and bare scientific notation."""
    return float(loader.construct_scalar(node))


RnnlearnLoader.add_multi_constructor('!obj:', construct_obj)
RnnlearnLoader.add_multi_constructor('!pkl:', construct_pkl)
RnnlearnLoader.add_multi_constructor('!import:', construct_import_suffix)
RnnlearnLoader.add_constructor('!import', construct_import)
RnnlearnLoader.add_constructor('!float', construct_float)
RnnlearnLoader.add_implicit_resolver('!float',
                                     re.compile(SCIENTIFIC_NOTATION_REGEXP),
                                     list('-+0123456789.'))
