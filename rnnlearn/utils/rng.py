"""
Construction of the numpy generators behind parameter initialization,
example shuffling and dropout masks.
"""
import numpy as np

DEFAULT_SEED = 42


def make_np_rng(rng_or_seed=None, default_seed=None, which_method=None):
    """
    Returns a numpy RandomState.

    Parameters
    ----------
    rng_or_seed : RandomState, int or list of int, optional
        Returned unchanged when it is a generator providing every method
        of `which_method`. Integers and lists of integers are seeds.
    default_seed : int or list of int, optional
        Seed used when `rng_or_seed` is None. `DEFAULT_SEED` otherwise.
    which_method : str or list of str, optional
        The methods the caller draws from, e.g. `['uniform',
        'permutation']` for `rnnlearn.models.rnn.RNN`.

    Returns
    -------
    rng : numpy.random.RandomState
    """
    if which_method is None:
        which_method = []
    elif isinstance(which_method, str):
        which_method = [which_method]

    is_seed = isinstance(rng_or_seed, (int, np.integer, list, tuple))
    if rng_or_seed is not None and not is_seed and \
       all(hasattr(rng_or_seed, name) for name in which_method):
        return rng_or_seed
    if rng_or_seed is None:
        rng_or_seed = DEFAULT_SEED if default_seed is None else default_seed
    return np.random.RandomState(rng_or_seed)
