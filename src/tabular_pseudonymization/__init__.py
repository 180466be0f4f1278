"""
Tabular Pseudonymization

Replaces the identifying fields of a tabular dataset with pseudonymous labels
using sequential counters, randomized counters or keyed cryptographic hashes,
and splits the result into a payload table and a separately held keyfile.
"""

__version__ = "1.0.0"

from .core.pipeline import PseudonymizationPipeline, pseudonymize
from .core.batch_processor import BatchProcessor
from .core.config import Config
from .strategies import (
    CounterStrategy,
    RandomStrategy,
    KeyedHashStrategy,
    SecretKey,
    create_strategy,
)

__all__ = [
    "PseudonymizationPipeline",
    "pseudonymize",
    "BatchProcessor",
    "Config",
    "CounterStrategy",
    "RandomStrategy",
    "KeyedHashStrategy",
    "SecretKey",
    "create_strategy",
]
