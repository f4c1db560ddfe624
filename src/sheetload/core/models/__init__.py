"""
Core data models for the ingestion pipeline.

All models use Pydantic for runtime validation and type safety.
"""

from .dataset import Dataset, Row, Scalar
from .load_result import LoadResult, WriteMode
from .pipeline_config import NotificationConfig, PipelineConfig
from .validation_report import RejectedRow, RuleFailure, ValidationReport, Verdict

__all__ = [
    "Dataset",
    "Row",
    "Scalar",
    "Verdict",
    "RuleFailure",
    "RejectedRow",
    "ValidationReport",
    "WriteMode",
    "LoadResult",
    "PipelineConfig",
    "NotificationConfig",
]
