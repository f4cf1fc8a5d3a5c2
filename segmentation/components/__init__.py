"""Derivation components for customer segmentation."""

from .base import BaseComponent, BaseClassifier
from .usage import UsageScoreDeriver, UsageCategoryClassifier
from .revenue import RevenueSegmentClassifier
from .lifecycle import CustomerSegmentClassifier

__all__ = [
    "BaseComponent",
    "BaseClassifier",
    "UsageScoreDeriver",
    "UsageCategoryClassifier",
    "RevenueSegmentClassifier",
    "CustomerSegmentClassifier",
]
