"""
Registration of the configuration variables used throughout rnnlearn.
"""
import pickle

from rnnlearn.configparser import AddConfigVar, EnumStr, IntParam, config

AddConfigVar('floatX',
             "Default floating-point precision of parameter buffers, "
             "gradients and sequence data.",
             EnumStr('float64', 'float32'))

AddConfigVar('pickle_protocol',
             "Pickle protocol used by rnnlearn.utils.serial when saving "
             "models. Lower it to share files with older interpreters.",
             IntParam(pickle.DEFAULT_PROTOCOL,
                      lambda p: 0 <= p <= pickle.HIGHEST_PROTOCOL))

AddConfigVar('seed',
             "Default seed of the random number generators used for "
             "parameter initialization and shuffling.",
             IntParam(2014, lambda s: s >= 0))
