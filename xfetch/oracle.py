"""
Expiration Oracle

Probabilistic early expiration (XFetch, Vattani et al., VLDB 2015). Each call
draws u from (0, 1] and treats the entry as expired when

    now + delta * beta * -ln(u) > expires_at

Far from the nominal expiry almost no caller sees an expired entry; as the
instant approaches, a growing fraction of callers do, so recomputation is
spread out instead of happening all at once.

Randomness is injected. The default source keeps one generator per thread,
so concurrent readers never share generator state. Sources built with
make_random_uniform() must not be shared between threads.
"""

import math
import random
import logging
import threading
from datetime import timedelta
from typing import TYPE_CHECKING, Callable, Optional

from .logger import log_extra

if TYPE_CHECKING:
    from .entry import CacheEntry

logger = logging.getLogger(__name__)

# Returns a float in (0, 1]
RandomUniform = Callable[[], float]

_local = threading.local()


def _thread_rng() -> random.Random:
    rng = getattr(_local, "rng", None)
    if rng is None:
        rng = random.Random()
        _local.rng = rng
    return rng


def default_random_uniform() -> float:
    """Draw from (0, 1] using the calling thread's generator."""
    return 1.0 - _thread_rng().random()


def make_random_uniform(seed: Optional[int] = None) -> RandomUniform:
    """
    Build a randomness source backed by its own generator.

    Args:
        seed: Optional seed for reproducible draws

    Returns:
        A callable returning floats in (0, 1]
    """
    rng = random.Random(seed)

    def draw() -> float:
        return 1.0 - rng.random()

    return draw


def early_window(delta: timedelta, beta: float, u: float) -> float:
    """
    Compute how far ahead of now, in seconds, the expiry check looks.

    Args:
        delta: Recomputation cost
        beta: Aggressiveness
        u: Uniform draw in (0, 1]

    Returns:
        Non-negative window in seconds
    """
    # -log(1.0) is -0.0
    return delta.total_seconds() * beta * -math.log(u) + 0.0


def is_expired(entry: "CacheEntry", now: float, random_uniform: RandomUniform) -> bool:
    """
    Decide whether an entry should be treated as expired.

    The caller guarantees that random_uniform returns values in (0, 1] and
    that the entry's beta is non-negative; neither is checked here.

    Args:
        entry: The cache entry
        now: Current wall-clock time as an epoch timestamp
        random_uniform: Source of uniform draws

    Returns:
        True if the entry should be recomputed
    """
    if entry.expires_at is None:
        return False

    window = early_window(entry.delta, entry.beta, random_uniform())
    expired = now + window > entry.expires_at
    if expired and now <= entry.expires_at:
        logger.debug(
            f"Early expiration {entry.expires_at - now:.3f}s before expiry",
            extra=log_extra(
                expires_in=entry.expires_at - now,
                window=window,
                delta=entry.delta,
                beta=entry.beta
            )
        )
    return expired
