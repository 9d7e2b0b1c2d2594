"""
XFetch Cache Entries

This package provides cache entries with probabilistic early expiration.
Readers of an entry nearing its TTL independently decide to recompute it
with a probability that grows as the expiry approaches, which spreads
recomputation load instead of concentrating it at the expiry instant.

Storing entries, and making sure only one caller recomputes, is left to
the surrounding cache.
"""

import logging

from .config import EntryOptions, OptionsLoader, get_options, reload_options
from .entry import CacheEntry, new_entry, new_entry_async
from .exceptions import ConfigurationError, XFetchError
from .logger import JsonFormatter, configure_logger, log_extra
from .oracle import (
    RandomUniform,
    default_random_uniform,
    early_window,
    is_expired,
    make_random_uniform
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

# Public API
__all__ = [
    # Entries
    'CacheEntry',
    'new_entry',
    'new_entry_async',

    # Expiration
    'is_expired',
    'early_window',
    'RandomUniform',
    'default_random_uniform',
    'make_random_uniform',

    # Configuration
    'EntryOptions',
    'OptionsLoader',
    'get_options',
    'reload_options',

    # Logging
    'configure_logger',
    'log_extra',
    'JsonFormatter',

    # Errors
    'XFetchError',
    'ConfigurationError',
]
