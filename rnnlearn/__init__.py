# By default, we configure logging to be non-silent. Use `restore_defaults()`
# from `rnnlearn.utils.logger` to revert this behaviour.

from rnnlearn.utils.logger import configure_custom

configure_custom()

# Remove this from the top-level namespace.
del configure_custom

__version__ = '0.1.0'
