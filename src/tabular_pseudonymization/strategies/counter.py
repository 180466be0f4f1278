"""Sequential counter labels drawn from a pre-generated pool."""

import random
from typing import List, Optional

import pandas as pd

from ..core.config import CounterConfig
from ..core.exceptions import CapacityExceeded, PseudonymizationError
from .base import KeyLike, PseudonymizationStrategy


def generate_labels(n: int, prefix: str = "PP", width: int = 3) -> List[str]:
    """
    Generate ``n`` zero-padded sequential labels.

    >>> generate_labels(3, prefix="PP", width=3)
    ['PP001', 'PP002', 'PP003']
    """
    if n < 0:
        raise ValueError("Number of labels cannot be negative")
    if n and len(str(n)) > width:
        raise CapacityExceeded(requested=n, capacity=10 ** width - 1)
    return [f"{prefix}{i:0{width}d}" for i in range(1, n + 1)]


class LabelPool:
    """
    A fixed list of labels generated before any data is seen.

    Labels are handed out in pool order by :meth:`draw`, so records can be
    labelled as they arrive. A label that has been drawn is never handed out
    again by the same pool.
    """

    def __init__(self, prefix: str = "PP", pool_size: int = 999, width: Optional[int] = None):
        if pool_size < 1:
            raise ValueError("Label pool size must be at least 1")
        self.prefix = prefix
        self.pool_size = pool_size
        self.width = width if width is not None else len(str(pool_size))
        if len(str(pool_size)) > self.width:
            raise ValueError(
                f"Padding width {self.width} cannot hold a pool of {pool_size} labels"
            )
        self._labels = generate_labels(pool_size, prefix, self.width)
        self._position = 0

    @classmethod
    def from_config(cls, config: CounterConfig) -> "LabelPool":
        return cls(prefix=config.prefix, pool_size=config.pool_size, width=config.width)

    @property
    def labels(self) -> List[str]:
        """All labels of the pool, in the order they will be drawn."""
        return list(self._labels)

    @property
    def remaining(self) -> int:
        return self.pool_size - self._position

    def draw(self, n: int) -> List[str]:
        """Hand out the next ``n`` unused labels."""
        if n < 0:
            raise ValueError("Number of labels cannot be negative")
        if n > self.remaining:
            raise CapacityExceeded(requested=n, capacity=self.remaining)
        drawn = self._labels[self._position:self._position + n]
        self._position += n
        return drawn

    def shuffled(self, rng: random.Random) -> "LabelPool":
        """Return a fresh pool holding the same labels in uniformly random order."""
        if self._position:
            raise PseudonymizationError("Cannot shuffle a pool that labels have already been drawn from")
        pool = LabelPool(self.prefix, self.pool_size, self.width)
        rng.shuffle(pool._labels)
        return pool

    def __len__(self) -> int:
        return self.pool_size

    def __repr__(self) -> str:
        return (
            f"LabelPool(prefix={self.prefix!r}, pool_size={self.pool_size}, "
            f"width={self.width}, remaining={self.remaining})"
        )


class CounterStrategy(PseudonymizationStrategy):
    """Row *i* gets the *i*-th label of a sequential pool."""

    name = "counter"

    def __init__(self, config: Optional[CounterConfig] = None, pool: Optional[LabelPool] = None):
        self.config = config or CounterConfig()
        super().__init__()
        self.pool = pool or LabelPool.from_config(self.config)

    def generate(self, n: int) -> List[str]:
        """Draw ``n`` labels in increasing order."""
        labels = self.pool.draw(n)
        self.logger.debug(f"Drew {len(labels)} sequential labels, {self.pool.remaining} left in pool")
        return labels

    def assign(self, records: pd.DataFrame, key: Optional[KeyLike] = None) -> List[str]:
        return self.generate(len(records))

    def __repr__(self) -> str:
        return f"CounterStrategy(pool={self.pool!r})"
