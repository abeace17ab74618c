#!/usr/bin/env python3
"""
Jitter Sources
Bounded randomness used to emulate model-to-model prediction variance.

Estimators never draw from a global random state; they receive a
JitterSource so callers can seed it or switch it off entirely.

Author: Port Weather Monitor Team
Version: 1.0.0
"""

import threading
from typing import Optional, Union

import numpy as np


class JitterSource:
    """Strategy interface for drawing values from a closed range."""

    def uniform(self, low: float, high: float) -> float:
        raise NotImplementedError

    def factor(self, spread: float) -> float:
        """Multiplicative factor in [1 - spread, 1 + spread]."""
        return self.uniform(1.0 - spread, 1.0 + spread)


class RandomJitter(JitterSource):
    """Seedable, thread-safe uniform jitter.

    Every instance owns its RandomState, so reseeding numpy's global
    generator never affects it. A lock keeps concurrent draws from
    interleaving.
    """

    def __init__(self, seed: Optional[Union[int, np.random.RandomState]] = None):
        self.seed = seed
        if isinstance(seed, np.random.RandomState):
            self._random_state = seed
        else:
            self._random_state = np.random.RandomState(seed)
        self._lock = threading.Lock()

    def uniform(self, low: float, high: float) -> float:
        with self._lock:
            value = float(self._random_state.uniform(low, high))
        # RandomState.uniform is half-open; keep the result inside the band
        return min(max(value, low), high)


class FixedJitter(JitterSource):
    """Deterministic jitter returning the midpoint of every range.

    Multiplicative factors collapse to exactly 1.0.
    """

    def uniform(self, low: float, high: float) -> float:
        return (low + high) / 2.0

    def factor(self, spread: float) -> float:
        return 1.0


def create_jitter(enabled: bool = True, seed: Optional[int] = None) -> JitterSource:
    """Build the jitter source described by configuration."""
    if not enabled:
        return FixedJitter()
    return RandomJitter(seed)
