"""Base class shared by all pseudonymization strategies."""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Union

import pandas as pd

from .secret_key import SecretKey


KeyLike = Union[SecretKey, str, bytes]


class PseudonymizationStrategy(ABC):
    """
    Produces one label per record of an identifying-fields table.

    Subclasses decide how labels are derived; the orchestrator only relies on
    :meth:`assign` returning labels positionally aligned with the input rows.
    """

    #: Registry name of the strategy
    name: str = "base"

    #: Whether the keyfile must carry the labels (False when they can be recomputed)
    keyfile_includes_labels: bool = True

    #: Whether :meth:`assign` needs a secret key
    requires_key: bool = False

    def __init__(self):
        self.logger = logging.getLogger(type(self).__module__)

    @abstractmethod
    def assign(self, records: pd.DataFrame, key: Optional[KeyLike] = None) -> List[str]:
        """
        Assign labels to records.

        Args:
            records: Identifying fields only, one row per record
            key: Secret key (keyed strategies only)

        Returns:
            One label per row, in input order
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
