"""Explicit random source for the composition planner."""

from __future__ import annotations

import random

_LCG_A = 1664525
_LCG_C = 1013904223
_LCG_M = 2**32


class RandomSource:
    """Uniform [0, 1) source.

    With a seed, a 32-bit linear congruential generator drives every draw, so
    the same seed always yields the same sequence. ``seed=0`` is a valid seed.
    Without one, draws come from the system RNG and are not reproducible.
    """

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._state = seed % _LCG_M if seed is not None else None
        self._fallback = random.Random() if seed is None else None

    @property
    def deterministic(self) -> bool:
        return self._state is not None

    def next(self) -> float:
        if self._state is None:
            return self._fallback.random()  # type: ignore[union-attr]
        self._state = (self._state * _LCG_A + _LCG_C) % _LCG_M
        return self._state / _LCG_M

    def __call__(self) -> float:
        return self.next()

    def uniform(self, low: float, high: float) -> float:
        return low + (high - low) * self.next()
