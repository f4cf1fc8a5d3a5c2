"""
Main SegmentationEngine class - orchestrates derivation components.

Usage:
    from segmentation import SegmentationEngine, SegmentationConfig

    # With default config
    engine = SegmentationEngine()
    result = engine.segment(df)

    # With custom config
    config = SegmentationConfig(usage_bounds=(25, 80))
    engine = SegmentationEngine(config)
    result = engine.segment(df)

    # Access results
    print(result.segments)
    print(result.summary())
"""

import logging
import multiprocessing
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .config import SegmentationConfig, DEFAULT_CONFIG
from .components import (
    UsageScoreDeriver,
    UsageCategoryClassifier,
    RevenueSegmentClassifier,
    CustomerSegmentClassifier,
)
from .schemas import SEGMENTATION_INPUT_SCHEMA

logger = logging.getLogger(__name__)


SEGMENT_COLUMNS = [
    "customer_id",
    "churn",
    "tenure_months",
    "revenue_segment",
    "usage_score",
    "usage_category",
    "customer_segment",
]

DERIVED_COLUMNS = [
    "usage_score",
    "usage_category",
    "revenue_segment",
    "customer_segment",
]


@dataclass
class SegmentationResult:
    """
    Container for segmentation results.

    Attributes:
        df: Input records (counters clamped) with derived columns added
        config: SegmentationConfig used for the run
    """

    df: pd.DataFrame
    config: SegmentationConfig

    @property
    def segments(self) -> pd.DataFrame:
        """Projection matching the retention segments table."""
        return self.df[SEGMENT_COLUMNS].reset_index(drop=True)

    def get_segment(self, label: str) -> pd.DataFrame:
        """
        Get customers in a lifecycle segment.

        Args:
            label: Customer segment label (e.g. "At Risk")

        Returns:
            DataFrame filtered to customers in that segment
        """
        if label not in self.config.customer_segments:
            raise ValueError(
                f"Unknown customer segment {label!r}; "
                f"expected one of {self.config.customer_segments}"
            )
        return self.df[self.df["customer_segment"] == label]

    def segment_counts(self) -> dict[str, int]:
        """Customer count per lifecycle segment (all segments present)."""
        counts = self.df["customer_segment"].value_counts()
        return {
            label: int(counts.get(label, 0))
            for label in self.config.customer_segments
        }

    def summary(self) -> pd.DataFrame:
        """
        Generate summary statistics by lifecycle and revenue segment.

        Returns:
            DataFrame with counts and average usage score
        """
        return (
            self.df.groupby(["customer_segment", "revenue_segment"])
            .agg(
                count=("customer_id", "count"),
                avg_usage_score=("usage_score", "mean"),
            )
            .round(1)
        )


class SegmentationEngine:
    """
    Vectorized feature derivation and segmentation engine.

    Stages, applied per record in this order:
    - Clamp usage counters (null/negative -> 0)
    - Usage score: weighted calls, SMS and data usage
    - Revenue segment: salary bands
    - Usage category: usage score bands
    - Customer segment: churn / tenure / usage decision tree

    Every stage returns new data; the input frame is never modified.
    """

    REQUIRED_COLUMNS = [
        "customer_id",
        "tenure_months",
        "estimated_salary",
        "churn",
    ]

    def __init__(self, config: Optional[SegmentationConfig] = None):
        """
        Initialize engine with configuration.

        Args:
            config: SegmentationConfig instance. Uses DEFAULT_CONFIG if None.
        """
        self.config = config or DEFAULT_CONFIG
        self._init_components()

    def _init_components(self) -> None:
        """Initialize all derivation components."""
        self.deriver = UsageScoreDeriver(self.config)
        self.classifiers = {
            "revenue_segment": RevenueSegmentClassifier(self.config),
            "usage_category": UsageCategoryClassifier(self.config),
            "customer_segment": CustomerSegmentClassifier(self.config),
        }

    def validate_input(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Validate required columns exist and match the input schema.

        Args:
            df: Input DataFrame

        Returns:
            Validated (type-coerced) copy of the input

        Raises:
            ValueError: If required columns are missing
            pandera.errors.SchemaError: If values violate the schema
        """
        missing = set(self.REQUIRED_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")
        return SEGMENTATION_INPUT_SCHEMA.validate(df.copy())

    def derive(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Derive usage score and all segments for validated records.

        Args:
            df: DataFrame already passed through validate_input

        Returns:
            New DataFrame with clamped counters and derived columns
        """
        result = df.copy()
        # Validated as nullable Int64 with no nulls
        result["tenure_months"] = result["tenure_months"].astype("int64")

        # Clamp before scoring; the clamped counters replace the originals
        clamped = self.deriver.clamp(result)
        for col in clamped.columns:
            result[col] = clamped[col]

        result["usage_score"] = self.deriver.derive(result)
        for name in ("revenue_segment", "usage_category", "customer_segment"):
            result[name] = self.classifiers[name].derive(result)

        return result

    def segment(
        self,
        df: pd.DataFrame,
        n_workers: Optional[int] = None,
        parallel_threshold: int = 100_000,
    ) -> SegmentationResult:
        """
        Derive features and segments for all customers.

        Records are independent, so large frames can be sharded across
        worker processes. Output row order always matches input order.

        Args:
            df: DataFrame with required columns
            n_workers: Worker processes (None or 1 = serial)
            parallel_threshold: Minimum rows before sharding is used

        Returns:
            SegmentationResult with derived columns

        Example:
            >>> engine = SegmentationEngine()
            >>> result = engine.segment(customers_df)
            >>> at_risk = result.get_segment("At Risk")
        """
        validated = self.validate_input(df)
        n_rows = len(validated)

        workers = n_workers or 1
        if workers == -1:
            workers = os.cpu_count() or 1

        if workers > 1 and n_rows >= parallel_threshold:
            chunk_size = max(1, -(-n_rows // workers))
            chunks = [
                validated.iloc[i : i + chunk_size]
                for i in range(0, n_rows, chunk_size)
            ]
            logger.info(
                "Segmenting %d customers in %d chunks across %d workers",
                n_rows, len(chunks), workers,
            )
            with multiprocessing.Pool(processes=workers) as pool:
                parts = pool.map(self.derive, chunks)
            derived = pd.concat(parts)
        else:
            logger.info("Segmenting %d customers", n_rows)
            derived = self.derive(validated)

        return SegmentationResult(df=derived, config=self.config)

    def segment_single(self, record: dict) -> dict:
        """
        Segment a single customer (convenience method).

        Args:
            record: Dictionary with required fields

        Returns:
            Dictionary with usage score and the three segments
        """
        df = pd.DataFrame([record])
        result = self.segment(df)
        row = result.df.iloc[0]
        return {
            "usage_score": float(row["usage_score"]),
            "usage_category": row["usage_category"],
            "revenue_segment": row["revenue_segment"],
            "customer_segment": row["customer_segment"],
        }


def generate_sample_data(n_customers: int = 100, seed: int = 42) -> pd.DataFrame:
    """
    Generate realistic raw telecom customer records for testing.

    Includes a small share of negative and missing usage counters,
    mirroring the data errors seen in the source extracts.
    """
    rng = np.random.default_rng(seed)

    partners = rng.choice(
        ["Airtel", "Reliance Jio", "Vodafone", "BSNL"],
        size=n_customers,
        p=[0.3, 0.35, 0.25, 0.1],
    )
    states = rng.choice(
        ["Karnataka", "Maharashtra", "Tamil Nadu", "Delhi", "Gujarat"],
        size=n_customers,
    )
    cities = {
        "Karnataka": "Bengaluru",
        "Maharashtra": "Mumbai",
        "Tamil Nadu": "Chennai",
        "Delhi": "New Delhi",
        "Gujarat": "Ahmedabad",
    }

    # Tenure 0-60 months, skewed toward newer customers
    tenure = np.clip(rng.exponential(scale=18, size=n_customers).astype(int), 0, 60)
    registration = pd.Timestamp("2024-12-31") - pd.to_timedelta(tenure * 30, unit="D")

    salary = np.clip(rng.normal(loc=42000, scale=22000, size=n_customers), 5000, 150000)

    calls = rng.integers(-10, 120, size=n_customers)
    sms = rng.integers(-5, 60, size=n_customers)
    data = rng.normal(loc=40, scale=30, size=n_customers).round(2)

    # ~2% missing data usage
    data[rng.random(n_customers) < 0.02] = np.nan

    return pd.DataFrame(
        {
            "customer_id": [f"CUST_{i:05d}" for i in range(n_customers)],
            "telecom_partner": partners,
            "gender": rng.choice(["M", "F"], size=n_customers),
            "age": rng.integers(18, 75, size=n_customers),
            "state": states,
            "city": [cities[s] for s in states],
            "pincode": [str(p) for p in rng.integers(110001, 700000, size=n_customers)],
            "date_of_registration": registration.normalize(),
            "tenure_months": tenure,
            "num_dependents": rng.integers(0, 5, size=n_customers),
            "estimated_salary": salary.round(2),
            "calls_made": calls,
            "sms_sent": sms,
            "data_used": data,
            "churn": (rng.random(n_customers) < 0.2).astype(int),
        }
    )
