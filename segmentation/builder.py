"""Analytical record builder - joins segments back onto raw records."""

import logging
from typing import Optional

import pandas as pd

from .config import SegmentationConfig, DEFAULT_CONFIG
from .engine import SEGMENT_COLUMNS
from .errors import DataIntegrityError
from .schemas import analytics_schema, segment_table_schema

logger = logging.getLogger(__name__)


ANALYTICS_COLUMNS = [
    "customer_id",
    "customer_segment",
    "usage_score",
    "usage_category",
    "revenue_segment",
    "tenure_months",
    # Demographic & geographic attributes
    "gender",
    "age",
    "state",
    "city",
    # Financial & behavioral attributes
    "estimated_salary",
    "churn",
    "calls_made",
    "sms_sent",
    "data_used",
]

# Attributes taken from the raw record side of the join
RAW_ATTRIBUTES = [
    "customer_id",
    "gender",
    "age",
    "state",
    "city",
    "estimated_salary",
    "churn",
    "calls_made",
    "sms_sent",
    "data_used",
]


class AnalyticalRecordBuilder:
    """
    Build the denormalized analytics table.

    One row per customer: the retention segments joined with the
    customer's demographic, financial and (clamped) usage attributes.
    Orphans, duplicate keys and row-count drift are fatal.
    """

    def __init__(self, config: Optional[SegmentationConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.segment_schema = segment_table_schema(self.config)
        self.analytics_schema = analytics_schema(self.config)

    def check_keys(self, raw: pd.DataFrame, segments: pd.DataFrame) -> None:
        """
        Verify raw records and segments pair up one-to-one.

        Raises:
            DataIntegrityError: On duplicates or orphaned customer ids
        """
        for name, frame in (("raw", raw), ("segments", segments)):
            dupes = frame.loc[frame["customer_id"].duplicated(), "customer_id"]
            if len(dupes):
                raise DataIntegrityError(
                    f"Duplicate customer_id in {name} table",
                    stage="join",
                    customer_ids=dupes.unique(),
                )

        raw_ids = set(raw["customer_id"])
        segment_ids = set(segments["customer_id"])

        unsegmented = raw_ids - segment_ids
        if unsegmented:
            raise DataIntegrityError(
                f"{len(unsegmented)} raw record(s) have no segmentation output",
                stage="join",
                customer_ids=unsegmented,
            )
        orphaned = segment_ids - raw_ids
        if orphaned:
            raise DataIntegrityError(
                f"{len(orphaned)} segment row(s) have no raw record",
                stage="join",
                customer_ids=orphaned,
            )

    def check_row_counts(self, **counts: int) -> None:
        """
        Verify all layers hold the same number of rows.

        Args:
            **counts: Row count per layer, e.g. raw=100, analytics=100

        Raises:
            DataIntegrityError: If any count differs
        """
        if len(set(counts.values())) > 1:
            detail = ", ".join(f"{name}={n}" for name, n in counts.items())
            raise DataIntegrityError(
                f"Row count mismatch across layers ({detail})",
                stage="row_count",
            )

    def build(self, raw: pd.DataFrame, segments: pd.DataFrame) -> pd.DataFrame:
        """
        Join segments onto raw records.

        Args:
            raw: Raw customer records (usage counters already clamped)
            segments: Retention segments table

        Returns:
            Analytics DataFrame with ANALYTICS_COLUMNS, ordered by customer_id

        Raises:
            DataIntegrityError: If the join would drop or duplicate rows
        """
        missing = set(RAW_ATTRIBUTES) - set(raw.columns)
        if missing:
            raise ValueError(f"Missing required raw columns: {missing}")

        segments = self.segment_schema.validate(segments[SEGMENT_COLUMNS])
        self.check_keys(raw, segments)

        analytics = segments.drop(columns=["churn"]).merge(
            raw[RAW_ATTRIBUTES],
            on="customer_id",
            how="inner",
            validate="one_to_one",
        )
        self.check_row_counts(
            raw=len(raw), segments=len(segments), analytics=len(analytics)
        )

        analytics = (
            analytics[ANALYTICS_COLUMNS]
            .sort_values("customer_id", kind="stable")
            .reset_index(drop=True)
        )
        analytics = self.analytics_schema.validate(analytics)
        logger.info("Built %d analytical records", len(analytics))
        return analytics
