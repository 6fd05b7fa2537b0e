"""
Random number primitives used by the simulation core.

Every weighted roll in the game follows the modulo-frequency pattern
``random_int(modulus) % freq == 0``; see ``RandomProvider.roll``.
"""

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class RandomProvider:
    """Uniform integer/float draws over an owned ``random.Random`` instance"""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def seed(self, seed: Optional[int]) -> None:
        self._rng.seed(seed)

    def random_int(self, max_exclusive: int) -> int:
        """Uniform integer in [0, max_exclusive); 0 for an empty range"""
        if max_exclusive <= 0:
            return 0
        return self._rng.randrange(max_exclusive)

    def random_range(self, minimum: int, maximum: int) -> int:
        """Uniform integer in [minimum, maximum] (both inclusive)"""
        return minimum + self.random_int(maximum - minimum + 1)

    def random_float(self) -> float:
        """Uniform float in [0, 1)"""
        return self._rng.random()

    def uniform(self, minimum: float, maximum: float) -> float:
        """Uniform float in [minimum, maximum)"""
        return minimum + self.random_float() * (maximum - minimum)

    def chance(self, probability: float) -> bool:
        return self.random_float() < probability

    def roll(self, modulus: int, freq: int) -> bool:
        """Weighted trigger: lower freq fires more often"""
        return self.random_int(modulus) % freq == 0

    def choice(self, items: Sequence[T]) -> T:
        return items[self.random_int(len(items))]
