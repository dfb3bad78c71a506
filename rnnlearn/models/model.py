"""Base class of the trainable models."""
__license__ = "3-clause BSD"

import logging

logger = logging.getLogger(__name__)


class Model(object):
    """
    A model whose learnable parameters live in one flat vector.

    Pickling drops the fields registered with `register_names_to_del`
    and tags the state with `_serialization_version`. Subclasses bump the
    version when their pickled fields change and upgrade older states in
    `__setstate__`.
    """

    _serialization_version = 0

    def __init__(self):
        self.names_to_del = set()

    def get_param_vector(self):
        """
        Returns the flat parameter vector. It is the model's storage, so
        writing into it changes the model.
        """
        raise NotImplementedError(str(type(self)) + " does not implement "
                                  "get_param_vector.")

    def set_param_vector(self, vector):
        """
        Copies `vector`, a 1-D array of the length of
        `get_param_vector()`, into the parameters. Passing the parameter
        vector itself is a no-op.
        """
        params = self.get_param_vector()
        vector = self._check_vector(vector, 'parameter')
        if vector is not params:
            params[...] = vector

    def _check_vector(self, vector, what):
        n = self.get_param_vector().shape[0]
        shape = getattr(vector, 'shape', None)
        if shape != (n,):
            raise ValueError("%s vector has shape %s but %s has %d "
                             "parameters" % (what.capitalize(), shape,
                                             type(self).__name__, n))
        return vector

    def register_names_to_del(self, names):
        """
        Excludes the attributes `names` from pickles, e.g. training data
        and per-step caches.

        Parameters
        ----------
        names : str or iterable of str
        """
        if isinstance(names, str):
            names = [names]
        names = list(names)
        if not all(isinstance(name, str) for name in names):
            raise ValueError("Attribute names must be strings, got %s" %
                             names)
        self.names_to_del = getattr(self, 'names_to_del', set()) | \
            set(names)

    def __getstate__(self):
        excluded = getattr(self, 'names_to_del', set())
        d = dict((name, value) for name, value in self.__dict__.items()
                 if name not in excluded)
        d['_serialization_version'] = type(self)._serialization_version
        return d

    def __setstate__(self, d):
        self.__dict__.update(d)
        if 'names_to_del' not in d:
            self.names_to_del = set()
