from __future__ import annotations

import math


class SeededRandom:
    """Deterministic [0, 1) stream driven by a float seed.

    Each draw feeds the previous value back: x = sin(s * 9999) * 10000 and the
    fractional part of x becomes both the output and the next state. Not
    cryptographic; the only guarantee is reproducibility on IEEE-754 `sin`.
    """

    __slots__ = ("seed", "_state", "draws")

    def __init__(self, seed: float):
        self.seed = float(seed)
        self._state = float(seed)
        self.draws = 0

    def next(self) -> float:
        x = math.sin(self._state * 9999) * 10000
        self._state = x - math.floor(x)
        self.draws += 1
        return self._state

    def next_index(self, n: int) -> int:
        """Index in [0, n). Returns 0 for n <= 1 but still consumes a draw."""
        r = self.next()
        if n <= 1:
            return 0
        return min(int(math.floor(r * n)), n - 1)

    def take(self, n: int) -> list[float]:
        return [self.next() for _ in range(int(n))]
