"""
The flat parameter buffer shared by all the layers of a network.
"""
import logging

import numpy as np

from rnnlearn.configdefaults import config

logger = logging.getLogger(__name__)


class ParameterArena(object):
    """
    One contiguous vector holding the parameters of every layer, plus one
    `(offset, length)` slot per layer.

    Layers never keep their own copy of their parameters: they read and
    write them through `view`, so that an optimizer working on `values`
    is the only thing that changes them.

    Parameters
    ----------
    counts : sequence of int
        Parameter count of each layer, in network order.
    dtype : str, optional
        Defaults to `config.floatX`.
    """

    def __init__(self, counts, dtype=None):
        if dtype is None:
            dtype = config.floatX
        self.counts = tuple(int(c) for c in counts)
        for count in self.counts:
            if count < 0:
                raise ValueError("Parameter counts must be non-negative, "
                                 "got %s" % (self.counts,))
        offsets = np.concatenate([[0], np.cumsum(self.counts, dtype=int)])
        self.slots = [(int(offset), count)
                      for offset, count in zip(offsets[:-1], self.counts)]
        self.values = np.zeros(int(offsets[-1]), dtype=dtype)

    def __len__(self):
        return self.values.shape[0]

    def matches(self, counts):
        """
        Returns True if the arena was laid out for exactly these
        per-layer parameter counts.
        """
        return self.counts == tuple(int(c) for c in counts)

    def view(self, slot, vector=None):
        """
        Returns the sub-range of `vector` that belongs to `slot`.

        Parameters
        ----------
        slot : tuple
            An `(offset, length)` pair from `self.slots`.
        vector : ndarray, optional
            Any vector with the arena layout, e.g. a gradient buffer.
            Defaults to `self.values`.

        Returns
        -------
        view : ndarray
            A writable view, never a copy.
        """
        if vector is None:
            vector = self.values
        offset, length = slot
        return vector[offset:offset + length]

    def zeros_like(self):
        """
        Returns a zero vector with the arena layout, e.g. to hold a
        gradient.
        """
        return np.zeros_like(self.values)

    def __str__(self):
        return "ParameterArena(%d parameters in %d slots)" % (
            len(self), len(self.slots))
