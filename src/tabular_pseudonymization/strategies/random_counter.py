"""Counter labels handed out in random order."""

import random
from typing import List, Optional

import pandas as pd

from ..core.config import CounterConfig
from .base import KeyLike, PseudonymizationStrategy
from .counter import LabelPool


class RandomStrategy(PseudonymizationStrategy):
    """
    Same label space as :class:`CounterStrategy`, assigned in shuffled order.

    The random source belongs to the strategy instance: pass ``seed`` for a
    reproducible order or ``rng`` to supply a source explicitly. Two instances
    never share a source, so concurrent runs cannot influence each other.

    By default each call to :meth:`generate` takes the next ``n`` labels of the
    sequential pool and permutes them, so the labels of one call are exactly
    the counter labels for that many records. With ``whole_pool=True`` the
    entire pool is permuted once up front and labels are drawn from it in
    order; labels then come from anywhere in the pool.
    """

    name = "random"

    def __init__(
        self,
        config: Optional[CounterConfig] = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        whole_pool: bool = False,
    ):
        if seed is not None and rng is not None:
            raise ValueError("Pass either seed or rng, not both")
        self.config = config or CounterConfig()
        super().__init__()
        self.rng = rng if rng is not None else random.Random(seed)
        self.whole_pool = whole_pool

        pool = LabelPool.from_config(self.config)
        self.pool = pool.shuffled(self.rng) if whole_pool else pool

    def generate(self, n: int) -> List[str]:
        """Draw ``n`` labels in random order."""
        labels = self.pool.draw(n)
        if not self.whole_pool:
            self.rng.shuffle(labels)
        self.logger.debug(f"Drew {len(labels)} shuffled labels, {self.pool.remaining} left in pool")
        return labels

    def assign(self, records: pd.DataFrame, key: Optional[KeyLike] = None) -> List[str]:
        return self.generate(len(records))

    def __repr__(self) -> str:
        return f"RandomStrategy(pool={self.pool!r}, whole_pool={self.whole_pool})"
