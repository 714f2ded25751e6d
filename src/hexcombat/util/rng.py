"""Dice: the single source of randomness for combat resolution.

Every combat function takes a dice object instead of reaching for a
global generator, so a seeded ``Dice`` (or any object with the same four
methods) makes a whole game reproducible.
"""

from __future__ import annotations

from typing import Optional, Protocol

import numpy as np


class DiceSource(Protocol):
    """Interface the engine expects from a dice object."""

    def d6(self) -> int: ...

    def roll(self, n: int) -> int: ...

    def random(self) -> float: ...

    def choice_index(self, n: int) -> int: ...


class Dice:
    """numpy-backed dice.

    Args:
        seed: Seed for the PCG64 bit generator; None draws fresh entropy.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self.g = np.random.Generator(np.random.PCG64(seed))

    def d6(self) -> int:
        """Uniform integer in [1, 6]."""
        return int(self.g.integers(1, 7))

    def roll(self, n: int) -> int:
        """Sum of ``n`` d6."""
        return sum(self.d6() for _ in range(n))

    def random(self) -> float:
        """Float in [0, 1)."""
        return float(self.g.random())

    def choice_index(self, n: int) -> int:
        """Uniform index in [0, n)."""
        if n <= 0:
            raise ValueError("choice_index needs n >= 1")
        return int(self.g.integers(0, n))
