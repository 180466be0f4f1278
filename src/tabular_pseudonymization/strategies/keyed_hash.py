"""Keyed cryptographic hash labels (HMAC over canonical identifying fields)."""

import datetime
import hmac
import math
from typing import List, Optional, Sequence

import pandas as pd

from ..core.config import HashingConfig
from ..core.exceptions import (
    InputValidationError,
    LabelCollision,
    MissingKey,
    NonUniqueIdentifyingTuple,
)
from .base import KeyLike, PseudonymizationStrategy
from .secret_key import SecretKey


HEX_ALPHABET_SIZE = 16


def collision_probability(n: int, length: int) -> float:
    """
    Birthday-bound probability that ``n`` random hex labels of ``length``
    characters contain at least one duplicate.
    """
    if n < 2:
        return 0.0
    space = float(HEX_ALPHABET_SIZE) ** length
    return -math.expm1(-n * (n - 1) / (2.0 * space))


def safe_truncation_length(n: int, max_probability: float = 1e-6, max_length: int = 128) -> int:
    """Shortest hex length whose collision probability for ``n`` labels stays within bounds."""
    for length in range(1, max_length + 1):
        if collision_probability(n, length) <= max_probability:
            return length
    return max_length


def hash_label(
    message: str,
    key: KeyLike,
    algorithm: str = "sha256",
    truncate_to: Optional[int] = None,
) -> str:
    """HMAC an identifying string that has already been canonicalized."""
    if truncate_to is not None and truncate_to < 1:
        raise ValueError('Truncation length must be at least 1 character')
    with _scoped_key(key) as secret:
        digest = hmac.new(secret.reveal(), message.encode('utf-8'), algorithm).hexdigest()
    return digest[:truncate_to] if truncate_to else digest


def canonical_value(value) -> str:
    """
    Render one identifying field as text, independent of the column dtype.

    Missing values become ``""``. Timestamps and dates at midnight render as
    ``YYYY-MM-DD`` (other times keep their ISO time part), and whole-number
    floats lose their ``.0`` so that an integer column upcast to float by a
    missing value hashes the same as before.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0) and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def canonicalize(records: pd.DataFrame, separator: str = "\x1f") -> List[str]:
    """
    Join each row's identifying fields, in column order, into one string.

    Each field is rendered with :func:`canonical_value`, so a date of birth
    stored as text or as a datetime column yields the same string. A field
    containing the separator could make two different rows join to the same
    string, so it is rejected.
    """
    canonical = []
    for position, row in enumerate(records.itertuples(index=False, name=None)):
        values = [canonical_value(value) for value in row]
        for column, value in zip(records.columns, values):
            if separator in value:
                raise InputValidationError(
                    f"Field '{column}' of row {position} contains the field separator {separator!r}"
                )
        canonical.append(separator.join(values))
    return canonical


class _scoped_key:
    """Wrap a raw key for one call; caller-owned SecretKey objects are left alone."""

    def __init__(self, key: Optional[KeyLike]):
        if key is None:
            raise MissingKey("A secret key is required for keyed hashing")
        self._owned = not isinstance(key, SecretKey)
        self._key = SecretKey(key) if self._owned else key

    def __enter__(self) -> SecretKey:
        return self._key

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._owned:
            self._key.destroy()
        self._key = None


class KeyedHashStrategy(PseudonymizationStrategy):
    """
    Derives each label from an HMAC of the record's identifying fields.

    Labels are deterministic for a given key, so the keyfile only needs the
    identifying fields and labels can be recomputed with :meth:`recompute`.
    The key is only touched inside :meth:`generate`; the strategy keeps no
    reference to it.
    """

    name = "hash"
    keyfile_includes_labels = False
    requires_key = True

    def __init__(self, config: Optional[HashingConfig] = None, truncate_to: Optional[int] = None):
        self.config = config or HashingConfig()
        super().__init__()
        if truncate_to is not None:
            self.config = HashingConfig(**{**self.config.model_dump(), 'truncate_to': truncate_to})

    @property
    def truncate_to(self) -> Optional[int]:
        return self.config.truncate_to

    def generate(
        self,
        records: pd.DataFrame,
        key: Optional[KeyLike],
        truncate_to: Optional[int] = None,
    ) -> List[str]:
        """
        Compute one label per record.

        Args:
            records: Identifying fields only, in a fixed column order
            key: Secret key
            truncate_to: Overrides the configured truncation length

        Returns:
            Lowercase hex labels aligned with the input rows

        Raises:
            MissingKey: no key supplied, empty, or already destroyed
            NonUniqueIdentifyingTuple: two records share identifying fields
            LabelCollision: two records produced the same (truncated) label
        """
        if truncate_to is None:
            truncate_to = self.config.truncate_to
        elif truncate_to < 1:
            raise ValueError('Truncation length must be at least 1 character')

        with _scoped_key(key) as secret:
            canonical = canonicalize(records, self.config.separator)
            self._check_unique(canonical)

            if truncate_to:
                self._check_truncation(len(canonical), truncate_to)

            key_bytes = secret.reveal()
            labels = []
            for message in canonical:
                digest = hmac.new(key_bytes, message.encode('utf-8'), self.config.algorithm).hexdigest()
                labels.append(digest[:truncate_to] if truncate_to else digest)
            del key_bytes

        self._check_collisions(labels)
        self.logger.debug(f"Hashed {len(labels)} records with HMAC-{self.config.algorithm}")
        return labels

    def assign(self, records: pd.DataFrame, key: Optional[KeyLike] = None) -> List[str]:
        return self.generate(records, key)

    def recompute(
        self,
        keyfile: pd.DataFrame,
        key: Optional[KeyLike],
        id_columns: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Re-derive the labels for a keyfile produced by this strategy."""
        if id_columns is not None:
            missing = [c for c in id_columns if c not in keyfile.columns]
            if missing:
                raise InputValidationError(f"Keyfile is missing identifying columns: {missing}")
            keyfile = keyfile[list(id_columns)]
        return self.generate(keyfile, key)

    def _check_unique(self, canonical: List[str]) -> None:
        seen = {}
        for position, value in enumerate(canonical):
            seen.setdefault(value, []).append(position)
        groups = [positions for positions in seen.values() if len(positions) > 1]
        if groups:
            raise NonUniqueIdentifyingTuple(groups)

    def _check_truncation(self, n: int, truncate_to: int) -> None:
        safe_length = safe_truncation_length(n, self.config.max_collision_probability)
        if truncate_to < safe_length:
            self.logger.warning(
                f"Truncating labels to {truncate_to} characters gives a collision probability of "
                f"{collision_probability(n, truncate_to):.2e} for {n} records; "
                f"use at least {safe_length} characters or full-length labels"
            )

    def _check_collisions(self, labels: List[str]) -> None:
        seen = {}
        for position, label in enumerate(labels):
            if label in seen:
                positions = [p for p, other in enumerate(labels) if other == label]
                raise LabelCollision(label, positions)
            seen[label] = position

    def __repr__(self) -> str:
        return (
            f"KeyedHashStrategy(algorithm={self.config.algorithm!r}, "
            f"truncate_to={self.config.truncate_to})"
        )
