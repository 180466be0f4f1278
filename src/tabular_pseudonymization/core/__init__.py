"""Core components for the tabular pseudonymization system."""

from .config import Config, load_config, get_config, set_config
from .exceptions import (
    PseudonymizationError,
    InputValidationError,
    CapacityExceeded,
    MissingKey,
    NonUniqueIdentifyingTuple,
    LabelCollision,
)
from .pipeline import PseudonymizationPipeline, PseudonymizationResult, pseudonymize
from .batch_processor import BatchProcessor, BatchResult

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "set_config",
    "PseudonymizationError",
    "InputValidationError",
    "CapacityExceeded",
    "MissingKey",
    "NonUniqueIdentifyingTuple",
    "LabelCollision",
    "PseudonymizationPipeline",
    "PseudonymizationResult",
    "pseudonymize",
    "BatchProcessor",
    "BatchResult",
]
