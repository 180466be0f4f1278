"""Batch processor for pseudonymizing several datasets in one go."""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import pandas as pd

from ..strategies import PseudonymizationStrategy, SecretKey, create_strategy
from ..strategies.base import KeyLike
from .config import Config, get_config
from .pipeline import PseudonymizationPipeline, PseudonymizationResult


StrategyFactory = Callable[[str], PseudonymizationStrategy]
KeyProvider = Callable[[str], KeyLike]


@dataclass
class BatchResult:
    """Result of batch processing."""
    total_datasets: int
    successful_datasets: int
    failed_datasets: int
    total_records: int
    total_processing_time: float
    average_processing_time: float
    results: Dict[str, PseudonymizationResult] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)


class BatchProcessor:
    """
    Runs one pseudonymization per named dataset.

    Every dataset gets its own pipeline and a strategy built fresh by the
    strategy factory, so label pools and random sources are never shared
    between runs. A failing dataset is reported in the batch result and does
    not stop the others.
    """

    def __init__(self, config: Optional[Config] = None, max_workers: Optional[int] = None):
        """
        Initialize the batch processor.

        Args:
            config: Configuration object
            max_workers: Thread pool size; 1 processes datasets sequentially
        """
        self.config = config or get_config()
        self.max_workers = max_workers or min(8, os.cpu_count() or 1)
        self.logger = logging.getLogger(__name__)

        self.logger.info(f"Batch processor initialized with {self.max_workers} workers")

    def process_datasets(
        self,
        datasets: Mapping[str, pd.DataFrame],
        strategy: Union[str, StrategyFactory],
        id_columns: Sequence[str],
        payload_columns: Sequence[str],
        key_provider: Optional[KeyProvider] = None,
    ) -> BatchResult:
        """
        Pseudonymize every dataset.

        Args:
            datasets: Dataset name -> table
            strategy: Registry name, or a callable building a new strategy for a dataset name
            id_columns: Identifying columns shared by all datasets
            payload_columns: Payload columns shared by all datasets
            key_provider: Returns a new key for a dataset name (keyed strategies).
                A :class:`SecretKey` it returns is destroyed once that dataset is done.

        Returns:
            BatchResult with per-dataset results and errors
        """
        if isinstance(strategy, str):
            strategy_name = strategy
            factory = lambda name: create_strategy(strategy_name, self.config)
        else:
            factory = strategy

        names = list(datasets)
        self.logger.info(f"Starting batch pseudonymization of {len(names)} datasets")

        results: Dict[str, PseudonymizationResult] = {}
        errors: Dict[str, str] = {}

        if self.max_workers > 1 and len(names) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                future_to_name = {
                    executor.submit(
                        self._process_one, name, datasets[name], factory,
                        id_columns, payload_columns, key_provider,
                    ): name
                    for name in names
                }
                for future in as_completed(future_to_name):
                    name = future_to_name[future]
                    try:
                        results[name] = future.result()
                    except Exception as e:
                        self.logger.error(f"Dataset {name} failed: {e}")
                        errors[name] = str(e)
        else:
            for name in names:
                try:
                    results[name] = self._process_one(
                        name, datasets[name], factory, id_columns, payload_columns, key_provider
                    )
                except Exception as e:
                    self.logger.error(f"Dataset {name} failed: {e}")
                    errors[name] = str(e)

        # Keep the caller's dataset order
        ordered = {name: results[name] for name in names if name in results}
        batch_result = self._create_batch_result(ordered, errors)

        self.logger.info(
            f"Batch processing completed: {batch_result.successful_datasets}/"
            f"{batch_result.total_datasets} successful"
        )
        return batch_result

    def _process_one(
        self,
        name: str,
        dataset: pd.DataFrame,
        factory: StrategyFactory,
        id_columns: Sequence[str],
        payload_columns: Sequence[str],
        key_provider: Optional[KeyProvider],
    ) -> PseudonymizationResult:
        """Pseudonymize a single dataset with its own pipeline and strategy."""
        pipeline = PseudonymizationPipeline(self.config)
        strategy = factory(name)

        key = key_provider(name) if (key_provider and strategy.requires_key) else None
        try:
            result = pipeline.run(dataset, strategy, id_columns, payload_columns, key=key)
        finally:
            if isinstance(key, SecretKey):
                key.destroy()
            key = None

        result.metadata['dataset'] = name
        return result

    def _create_batch_result(
        self, results: Dict[str, PseudonymizationResult], errors: Dict[str, str]
    ) -> BatchResult:
        """Create batch result from individual results."""
        total_datasets = len(results) + len(errors)
        total_processing_time = sum(r.processing_time for r in results.values())

        return BatchResult(
            total_datasets=total_datasets,
            successful_datasets=len(results),
            failed_datasets=len(errors),
            total_records=sum(r.records_processed for r in results.values()),
            total_processing_time=total_processing_time,
            average_processing_time=(
                total_processing_time / len(results) if results else 0.0
            ),
            results=results,
            errors=errors,
            metadata={
                'processing_mode': 'parallel' if self.max_workers > 1 else 'sequential',
                'max_workers': self.max_workers,
                'timestamp': time.time(),
            },
        )
