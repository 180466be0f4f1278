"""Validation of the payload table and keyfile produced by a pseudonymization run."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

import pandas as pd

from ..core.config import Config


@dataclass
class QualityAssuranceResult:
    """Result of quality assurance validation."""
    passed: bool
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    duplicate_labels: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)


class QualityAssurance:
    """
    Checks the two output tables of a run against each other.

    The checks are:
    1. Every payload row carries exactly one, non-empty label
    2. No label appears twice in the payload table or in the keyfile
    3. No identifying column leaked into the payload table
    4. When the keyfile carries labels, row *i* of both tables has the same label
    """

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.stats = {
            'validations_performed': 0,
            'validations_passed': 0,
            'common_issues': {},
        }

    def validate(
        self,
        payload: pd.DataFrame,
        keyfile: pd.DataFrame,
        id_columns: Sequence[str],
        keyfile_includes_labels: bool = True,
    ) -> QualityAssuranceResult:
        """
        Validate a payload table and its keyfile.

        Args:
            payload: Payload fields plus the label column
            keyfile: Identifying fields, plus the label column when labels are stored
            id_columns: Names of the identifying columns
            keyfile_includes_labels: Whether the keyfile is expected to hold labels

        Returns:
            QualityAssuranceResult with validation details
        """
        start_time = time.time()
        label_column = self.config.output.label_column
        result = QualityAssuranceResult(passed=True)

        if label_column not in payload.columns:
            result.errors.append(f"Payload table has no '{label_column}' column")
        else:
            labels = payload[label_column]

            if labels.isna().any() or (labels.astype(str) == "").any():
                result.errors.append("Payload table contains records without a label")

            duplicates = labels[labels.duplicated()].unique().tolist()
            if duplicates:
                result.duplicate_labels.extend(duplicates)
                result.errors.append(f"Payload table repeats labels: {duplicates}")

            if len(keyfile) != len(payload):
                result.errors.append(
                    f"Keyfile has {len(keyfile)} rows but payload table has {len(payload)}"
                )
            elif keyfile_includes_labels:
                self._check_keyfile_labels(payload, keyfile, label_column, result)
            elif label_column in keyfile.columns:
                result.warnings.append("Keyfile stores labels that could be recomputed")

        leaked = [c for c in id_columns if c in payload.columns]
        if leaked:
            result.errors.append(f"Identifying columns present in payload table: {leaked}")

        result.passed = not result.errors
        result.metrics = {
            'records': len(payload),
            'validation_time': time.time() - start_time,
        }

        self._update_stats(result)
        self.logger.info(
            f"QA validation completed: {'PASSED' if result.passed else 'FAILED'} "
            f"({len(payload)} records)"
        )
        return result

    def _check_keyfile_labels(
        self,
        payload: pd.DataFrame,
        keyfile: pd.DataFrame,
        label_column: str,
        result: QualityAssuranceResult,
    ) -> None:
        if label_column not in keyfile.columns:
            result.errors.append(f"Keyfile has no '{label_column}' column")
            return

        keyfile_labels = keyfile[label_column]
        duplicates = keyfile_labels[keyfile_labels.duplicated()].unique().tolist()
        if duplicates:
            result.duplicate_labels.extend(d for d in duplicates if d not in result.duplicate_labels)
            result.errors.append(f"Keyfile repeats labels: {duplicates}")

        mismatched = (
            payload[label_column].reset_index(drop=True) != keyfile_labels.reset_index(drop=True)
        )
        if mismatched.any():
            result.errors.append(
                f"{int(mismatched.sum())} record(s) have different labels in payload table and keyfile"
            )

    def _update_stats(self, result: QualityAssuranceResult) -> None:
        self.stats['validations_performed'] += 1
        if result.passed:
            self.stats['validations_passed'] += 1
        for error in result.errors:
            issue = error.split(':')[0]
            self.stats['common_issues'][issue] = self.stats['common_issues'].get(issue, 0) + 1

    def get_stats(self) -> Dict[str, Any]:
        """Get quality assurance statistics."""
        return dict(self.stats)
