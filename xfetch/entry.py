"""
Cache Entry Module

This module provides the CacheEntry class, an immutable cached value carrying
what the expiration oracle needs: the cost of recomputing the value, the
aggressiveness of early expiration, and the nominal expiry instant.

Entries are built with new_entry() (or new_entry_async()), which runs the
value function once and times it. There is no way to update an entry in
place; the surrounding cache replaces it after a recomputation.
"""

import time
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Generic, Optional, TypeVar, Union

from .config import EntryOptions
from .logger import log_extra
from .oracle import RandomUniform, default_random_uniform, is_expired

logger = logging.getLogger(__name__)

# Type variable for cached value
V = TypeVar('V')

Duration = Union[timedelta, int, float, str]


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """
    Represents a cached value with probabilistic early expiration.

    Instances are read-only and may be shared between threads.

    Attributes:
        value: The cached value
        delta: Estimated time needed to recompute the value
        beta: Early expiration aggressiveness (0 disables it)
        expires_at: Nominal expiry as an epoch timestamp, or None for no expiration
    """
    value: V
    delta: timedelta
    beta: float
    expires_at: Optional[float] = None

    def get(self) -> V:
        """Return the cached value without checking expiration."""
        return self.value

    def is_expired(
        self,
        now: Optional[float] = None,
        random_uniform: Optional[RandomUniform] = None
    ) -> bool:
        """
        Check whether the entry should be treated as expired.

        Repeated calls can disagree; each call makes its own random draw.

        Args:
            now: Epoch timestamp to check against (default: current time)
            random_uniform: Source of draws in (0, 1] (default: thread-local generator)

        Returns:
            True if the caller should recompute the value
        """
        return is_expired(
            self,
            time.time() if now is None else now,
            random_uniform or default_random_uniform
        )

    @property
    def expiry(self) -> Optional[datetime]:
        """Nominal expiry as an aware UTC datetime, or None."""
        if self.expires_at is None:
            return None
        return datetime.fromtimestamp(self.expires_at, tz=timezone.utc)

    def get_ttl(self, now: Optional[float] = None) -> Optional[float]:
        """
        Get the remaining time until nominal expiry.

        Returns:
            Remaining seconds (never negative), or None if no expiration
        """
        if self.expires_at is None:
            return None
        remaining = self.expires_at - (time.time() if now is None else now)
        return max(0.0, remaining)


def _build(value: V, elapsed: float, options: EntryOptions) -> CacheEntry[V]:
    measured = timedelta(seconds=elapsed)
    delta = measured if options.delta is None else options.delta
    expires_at = None
    if options.expires:
        expires_at = time.time() + options.ttl.total_seconds()

    logger.debug(
        f"Computed cache value in {elapsed:.3f}s",
        extra=log_extra(
            elapsed=elapsed,
            delta=delta,
            beta=options.beta,
            ttl=options.ttl if options.expires else None,
            expires_at=expires_at
        )
    )
    return CacheEntry(value=value, delta=delta, beta=options.beta, expires_at=expires_at)


def _resolve(
    options: Optional[EntryOptions],
    delta: Optional[Duration],
    beta: Optional[float],
    ttl: Optional[Duration]
) -> EntryOptions:
    base = options if options is not None else EntryOptions()
    if delta is None and beta is None and ttl is None:
        return base
    return base.merged(delta=delta, beta=beta, ttl=ttl)


def new_entry(
    value_func: Callable[[], V],
    options: Optional[EntryOptions] = None,
    *,
    delta: Optional[Duration] = None,
    beta: Optional[float] = None,
    ttl: Optional[Duration] = None
) -> CacheEntry[V]:
    """
    Create a cache entry by running value_func once.

    The call to value_func is always timed; the measurement becomes the
    entry's delta unless one is given explicitly. Exceptions raised by
    value_func propagate unchanged.

    Args:
        value_func: Zero-argument callable producing the value
        options: Entry options (default: EntryOptions())
        delta: Recomputation cost override
        beta: Aggressiveness override (default 1.0)
        ttl: Time-to-live; None or zero means no expiration

    Returns:
        The new cache entry

    Raises:
        pydantic.ValidationError: If an override is invalid
    """
    resolved = _resolve(options, delta, beta, ttl)

    start = time.perf_counter()
    value = value_func()
    elapsed = time.perf_counter() - start

    return _build(value, elapsed, resolved)


async def new_entry_async(
    value_func: Callable[[], Awaitable[V]],
    options: Optional[EntryOptions] = None,
    *,
    delta: Optional[Duration] = None,
    beta: Optional[float] = None,
    ttl: Optional[Duration] = None
) -> CacheEntry[V]:
    """
    Create a cache entry by awaiting value_func once.

    Same contract as new_entry(), with the awaited duration measured.
    """
    resolved = _resolve(options, delta, beta, ttl)

    start = time.perf_counter()
    value = await value_func()
    elapsed = time.perf_counter() - start

    return _build(value, elapsed, resolved)
