"""
RandomSource -- Injectable uniform random generator.

Responsibility:
    Gives the draw engine a single seam for randomness so that tier and
    item rolls are reproducible in tests and replayable from a seed.

Architecture position:
    Kernel > Domain -- pure, except SystemRandomSource which draws from
    the interpreter's PRNG.

Failure modes:
    - ScriptedRandomSource raises ValueError for values outside [0, 1)
      and RuntimeError when exhausted without ``cycle=True``.
"""

import random
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable


class RandomSource(ABC):
    """
    Abstract uniform random source.

    Contract:
        ``random()`` returns a float uniformly distributed in [0, 1).
        Derived helpers are defined once here so every implementation
        maps a raw value to a percentage or an index the same way.
    """

    @abstractmethod
    def random(self) -> float:
        """Return the next float in [0, 1)."""
        ...

    def percent(self) -> float:
        """Return a float in [0, 100)."""
        return self.random() * 100

    def index(self, size: int) -> int:
        """Return an index in [0, size) using ``floor(u * size)``."""
        if size <= 0:
            raise ValueError("index() requires a positive size")
        return min(int(self.random() * size), size - 1)


class SystemRandomSource(RandomSource):
    """Production source backed by ``random.Random``."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self._lock = threading.Lock()

    def random(self) -> float:
        with self._lock:
            return self._rng.random()


class SeededRandomSource(SystemRandomSource):
    """Reproducible source: identical seeds yield identical draw sequences."""

    def __init__(self, seed: int):
        self.seed = seed
        super().__init__(random.Random(seed))


class ScriptedRandomSource(RandomSource):
    """
    Test source returning values from a predefined sequence.

    Contract:
        Values are returned in the exact order supplied.  With
        ``cycle=True`` the sequence restarts once exhausted.  Values are
        expressed on ``scale`` (1 for unit floats, 100 for percentages);
        ``percent()`` on a percentage-scaled source returns the scripted
        value unchanged so boundary draws stay exact.
    """

    def __init__(self, values: Iterable[float], cycle: bool = False, scale: float = 1):
        self._values = list(values)
        if not self._values:
            raise ValueError("ScriptedRandomSource requires at least one value")
        for value in self._values:
            if not 0 <= value < scale:
                raise ValueError(f"Scripted value {value!r} is outside [0, {scale})")
        self._scale = scale
        self._cycle = cycle
        self._position = 0
        self._lock = threading.Lock()

    @classmethod
    def from_percent(cls, *draws: float, cycle: bool = False) -> "ScriptedRandomSource":
        """Build a source whose ``percent()`` calls return exactly ``draws``."""
        return cls(draws, cycle=cycle, scale=100)

    @property
    def consumed(self) -> int:
        return self._position

    def _next(self) -> float:
        with self._lock:
            if self._position >= len(self._values):
                if not self._cycle:
                    raise RuntimeError("ScriptedRandomSource exhausted")
                self._position = 0
            value = self._values[self._position]
            self._position += 1
            return value

    def random(self) -> float:
        return self._next() / self._scale

    def percent(self) -> float:
        if self._scale == 100:
            return self._next()
        return self._next() / self._scale * 100
