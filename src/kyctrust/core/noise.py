"""
Injectable randomness.

Every simulator draws from a `NoiseSource` instead of the global `random` module, so a
session can be replayed exactly by seeding it (tests, CLI `--seed`, support tickets).
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


class NoiseSource:
    """Thin wrapper around `random.Random` exposing the draws the simulators need."""

    def __init__(self, seed: int | None = None):
        self._rng = random.Random(seed)

    def uniform(self, low: float, high: float) -> float:
        return self._rng.uniform(low, high)

    def jitter(self, amplitude: float) -> float:
        """Uniform offset in [-amplitude, amplitude]."""
        return self._rng.uniform(-amplitude, amplitude)

    def chance(self, probability: float) -> bool:
        """True with the given probability."""
        return self._rng.random() < probability

    def choice(self, options: Sequence[T]) -> T:
        return self._rng.choice(options)

    def randint(self, low: int, high: int) -> int:
        """Inclusive on both ends."""
        return self._rng.randint(low, high)
