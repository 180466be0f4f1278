"""Main pseudonymization pipeline for tabular datasets."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..quality.quality_assurance import QualityAssurance
from ..strategies import PseudonymizationStrategy, create_strategy
from ..strategies.base import KeyLike
from .config import Config, get_config
from .exceptions import InputValidationError, LabelCollision, PseudonymizationError


@dataclass
class PseudonymizationResult:
    """Result of one pseudonymization run."""
    payload: pd.DataFrame
    keyfile: pd.DataFrame
    strategy: str
    records_processed: int
    keyfile_includes_labels: bool
    label_column: str
    processing_time: float
    qa_passed: Optional[bool] = None
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class PseudonymizationPipeline:
    """
    Replaces the identifying fields of a dataset with labels.

    A run:
    1. Checks the column partition against the dataset
    2. Asks the strategy for one label per record, in input order
    3. Builds the payload table (payload fields + label column)
    4. Builds the keyfile (identifying fields, + labels unless recomputable)
    5. Cross-checks both tables

    Nothing is written anywhere; storing the keyfile apart from the payload
    table is up to the caller.
    """

    def __init__(self, config: Optional[Config] = None, **kwargs):
        """
        Initialize the pseudonymization pipeline.

        Args:
            config: Configuration object. If None, uses the default configuration.
            **kwargs: Additional configuration overrides.
        """
        self.config = config or get_config()

        if kwargs:
            config_dict = self.config.model_dump()
            config_dict.update(kwargs)
            self.config = Config(**config_dict)

        self.logger = logging.getLogger(__name__)
        self.quality_assurance = QualityAssurance(self.config)

        self.stats = {
            'runs': 0,
            'records_processed': 0,
            'runs_by_strategy': {},
            'total_processing_time': 0.0,
        }

    def run(
        self,
        dataset: pd.DataFrame,
        strategy: Union[str, PseudonymizationStrategy],
        id_columns: Sequence[str],
        payload_columns: Sequence[str],
        key: Optional[KeyLike] = None,
    ) -> PseudonymizationResult:
        """
        Pseudonymize a dataset.

        Args:
            dataset: Input table, one row per record
            strategy: Strategy instance, or a registry name for a fresh one
            id_columns: Identifying columns, in canonical order
            payload_columns: Columns to keep in the payload table
            key: Secret key, only for strategies that need one

        Returns:
            PseudonymizationResult holding the payload table and the keyfile
        """
        start_time = time.time()

        if isinstance(strategy, str):
            strategy = create_strategy(strategy, self.config)

        id_columns = list(id_columns)
        payload_columns = list(payload_columns)
        self._validate_columns(dataset, id_columns, payload_columns)

        if key is not None and not strategy.requires_key:
            raise InputValidationError(f"The {strategy.name} strategy does not take a secret key")

        self.logger.info(f"Pseudonymizing {len(dataset)} records with the {strategy.name} strategy")

        records = dataset[id_columns].reset_index(drop=True)
        if strategy.requires_key:
            labels = strategy.assign(records, key)
        else:
            labels = strategy.assign(records)
        key = None

        if len(labels) != len(records):
            raise PseudonymizationError(
                f"Strategy {strategy.name} returned {len(labels)} labels for {len(records)} records"
            )

        label_column = self.config.output.label_column
        payload = dataset[payload_columns].reset_index(drop=True).copy()
        payload[label_column] = labels

        keyfile = records.copy()
        if strategy.keyfile_includes_labels:
            keyfile[label_column] = labels

        result = PseudonymizationResult(
            payload=payload,
            keyfile=keyfile,
            strategy=strategy.name,
            records_processed=len(records),
            keyfile_includes_labels=strategy.keyfile_includes_labels,
            label_column=label_column,
            processing_time=0.0,
            metadata={
                'id_columns': id_columns,
                'payload_columns': payload_columns,
            },
        )

        if self.config.quality_assurance.enable_validation:
            qa_result = self.quality_assurance.validate(
                payload, keyfile, id_columns, strategy.keyfile_includes_labels
            )
            result.qa_passed = qa_result.passed
            result.warnings.extend(qa_result.warnings)
            if qa_result.duplicate_labels:
                raise LabelCollision(qa_result.duplicate_labels[0])
            if not qa_result.passed:
                raise PseudonymizationError(
                    f"Output failed quality assurance: {'; '.join(qa_result.errors)}"
                )

        result.processing_time = time.time() - start_time
        self._update_stats(result)

        self.logger.info(
            f"Pseudonymization completed: {result.records_processed} records labelled "
            f"in {result.processing_time:.3f}s"
        )
        return result

    def _validate_columns(
        self, dataset: pd.DataFrame, id_columns: List[str], payload_columns: List[str]
    ) -> None:
        """Reject column partitions that do not fit the dataset."""
        if not isinstance(dataset, pd.DataFrame):
            raise InputValidationError(f"Dataset must be a pandas DataFrame, not {type(dataset).__name__}")

        if not id_columns:
            raise InputValidationError("At least one identifying column is required")

        for name, columns in (("identifying", id_columns), ("payload", payload_columns)):
            repeated = sorted({c for c in columns if columns.count(c) > 1})
            if repeated:
                raise InputValidationError(f"Repeated {name} columns: {repeated}")

        missing = [c for c in id_columns + payload_columns if c not in dataset.columns]
        if missing:
            raise InputValidationError(f"Columns not found in dataset: {missing}")

        overlap = sorted(set(id_columns) & set(payload_columns))
        if overlap:
            raise InputValidationError(f"Columns cannot be both identifying and payload: {overlap}")

        label_column = self.config.output.label_column
        if label_column in id_columns or label_column in payload_columns:
            raise InputValidationError(
                f"Label column '{label_column}' clashes with an input column"
            )

    def _update_stats(self, result: PseudonymizationResult) -> None:
        """Update pipeline statistics."""
        self.stats['runs'] += 1
        self.stats['records_processed'] += result.records_processed
        self.stats['total_processing_time'] += result.processing_time
        self.stats['runs_by_strategy'][result.strategy] = (
            self.stats['runs_by_strategy'].get(result.strategy, 0) + 1
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline processing statistics."""
        stats = self.stats.copy()
        stats['runs_by_strategy'] = dict(self.stats['runs_by_strategy'])
        return stats

    def reset_stats(self) -> None:
        """Reset pipeline statistics."""
        self.stats = {
            'runs': 0,
            'records_processed': 0,
            'runs_by_strategy': {},
            'total_processing_time': 0.0,
        }


def pseudonymize(
    dataset: pd.DataFrame,
    strategy: Union[str, PseudonymizationStrategy],
    id_columns: Sequence[str],
    payload_columns: Sequence[str],
    key: Optional[KeyLike] = None,
    config: Optional[Config] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Pseudonymize a dataset and return ``(payload_table, keyfile)``.

    See :meth:`PseudonymizationPipeline.run` for the arguments.
    """
    result = PseudonymizationPipeline(config).run(
        dataset, strategy, id_columns, payload_columns, key=key
    )
    return result.payload, result.keyfile
