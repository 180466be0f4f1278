"""Quality assurance for pseudonymization output."""

from .quality_assurance import QualityAssurance, QualityAssuranceResult

__all__ = [
    "QualityAssurance",
    "QualityAssuranceResult",
]
