"""
Customer Segmentation Package

Rule-based derivation of usage scores and retention segments
for telecom customers.
"""

from .config import SegmentationConfig
from .engine import SegmentationEngine, SegmentationResult, generate_sample_data
from .builder import AnalyticalRecordBuilder
from .reports import RetentionReport
from .errors import (
    SegmentationError,
    UnclassifiableRecordError,
    DataIntegrityError,
    InvalidRecordError,
)

__all__ = [
    "SegmentationConfig",
    "SegmentationEngine",
    "SegmentationResult",
    "AnalyticalRecordBuilder",
    "RetentionReport",
    "SegmentationError",
    "UnclassifiableRecordError",
    "DataIntegrityError",
    "InvalidRecordError",
    "generate_sample_data",
]
__version__ = "1.0.0"
