"""Pseudonymization strategies and the registry that builds them by name."""

from typing import Optional

from ..core.config import Config, get_config
from ..core.exceptions import InputValidationError
from .base import PseudonymizationStrategy
from .counter import CounterStrategy, LabelPool, generate_labels
from .random_counter import RandomStrategy
from .keyed_hash import (
    KeyedHashStrategy,
    canonical_value,
    canonicalize,
    collision_probability,
    hash_label,
    safe_truncation_length,
)
from .secret_key import SecretKey


STRATEGIES = {
    CounterStrategy.name: CounterStrategy,
    RandomStrategy.name: RandomStrategy,
    KeyedHashStrategy.name: KeyedHashStrategy,
}


def create_strategy(name: str, config: Optional[Config] = None, **kwargs) -> PseudonymizationStrategy:
    """
    Build a fresh strategy instance.

    Args:
        name: One of ``"counter"``, ``"random"`` or ``"hash"``
        config: Configuration object. If None, uses the default configuration.
        **kwargs: Passed to the strategy constructor (e.g. ``seed``, ``truncate_to``)
    """
    config = config or get_config()
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise InputValidationError(
            f"Unknown strategy '{name}', expected one of {sorted(STRATEGIES)}"
        ) from None

    if strategy_cls is KeyedHashStrategy:
        return strategy_cls(config.hashing, **kwargs)
    return strategy_cls(config.counter, **kwargs)


__all__ = [
    "PseudonymizationStrategy",
    "CounterStrategy",
    "RandomStrategy",
    "KeyedHashStrategy",
    "LabelPool",
    "SecretKey",
    "STRATEGIES",
    "canonical_value",
    "canonicalize",
    "collision_probability",
    "create_strategy",
    "generate_labels",
    "hash_label",
    "safe_truncation_length",
]
