"""Error hierarchy for the pseudonymization system."""

from typing import List, Optional


class PseudonymizationError(Exception):
    """Base class for all pseudonymization failures."""


class InputValidationError(PseudonymizationError):
    """The dataset or the column partition handed in by the caller is unusable."""


class CapacityExceeded(PseudonymizationError):
    """More labels were requested than the label pool can supply."""

    def __init__(self, requested: int, capacity: int):
        self.requested = requested
        self.capacity = capacity
        super().__init__(
            f"Requested {requested} labels but only {capacity} are available in the pool"
        )


class MissingKey(PseudonymizationError):
    """The keyed-hash strategy was invoked without a usable secret key."""


class NonUniqueIdentifyingTuple(PseudonymizationError):
    """Two or more records share the same canonical identifying string."""

    def __init__(self, positions: List[List[int]]):
        self.positions = positions
        super().__init__(
            f"{len(positions)} group(s) of records share identical identifying fields "
            f"(row positions: {positions})"
        )


class LabelCollision(PseudonymizationError):
    """Two different records ended up with the same label."""

    def __init__(self, label: str, positions: Optional[List[int]] = None):
        self.label = label
        self.positions = positions or []
        super().__init__(
            f"Label '{label}' was assigned to more than one record (row positions: {self.positions})"
        )
