"""
Data schema definitions for the segmentation pipeline.

Uses Pandera for runtime validation of DataFrames to catch ingestion
errors before derivation and to guarantee the column contract the
reporting layer relies on.
"""

import pandas as pd
from pandera import Column, Check, DataFrameSchema
from pandera.errors import SchemaErrors

from .config import DEFAULT_CONFIG
from .errors import InvalidRecordError


REVENUE_SEGMENTS = list(DEFAULT_CONFIG.revenue_labels)
USAGE_CATEGORIES = list(DEFAULT_CONFIG.usage_labels)
CUSTOMER_SEGMENTS = DEFAULT_CONFIG.customer_segments


# Columns the segmentation engine reads
_CORE_COLUMNS = {
    "customer_id": Column(
        str,
        nullable=False,
        unique=True,
        description="Unique customer identifier"
    ),
    # Int64 rejects fractional months rather than truncating them
    "tenure_months": Column(
        "Int64",
        nullable=False,
        checks=Check.greater_than_or_equal_to(0),
        description="Months since registration (whole months)"
    ),
    "estimated_salary": Column(
        float,
        nullable=True,  # Domain policy is enforced by RevenueSegmentClassifier
        description="Estimated salary, revenue proxy"
    ),
    # Usage counters may arrive null or negative; they are clamped to 0
    "calls_made": Column(float, nullable=True, required=False),
    "sms_sent": Column(float, nullable=True, required=False),
    "data_used": Column(float, nullable=True, required=False),
    "churn": Column(
        int,
        nullable=False,
        checks=Check.isin([0, 1]),
        description="0 = active, 1 = churned"
    ),
}


# Schema for segmentation engine input
SEGMENTATION_INPUT_SCHEMA = DataFrameSchema(
    _CORE_COLUMNS,
    strict=False,  # Allow demographic columns to pass through
    coerce=True,
    description="Schema for segmentation engine input data"
)


# Schema for the full raw customer table
RAW_CUSTOMER_SCHEMA = DataFrameSchema(
    {
        **_CORE_COLUMNS,
        "telecom_partner": Column(str, nullable=True),
        "gender": Column(str, nullable=True),
        "age": Column(
            "Int64",
            nullable=True,
            checks=Check.greater_than_or_equal_to(0),
        ),
        "state": Column(str, nullable=True),
        "city": Column(str, nullable=True),
        "pincode": Column(str, nullable=True),
        "date_of_registration": Column(
            "datetime64[ns]",
            nullable=True,
            required=False,
        ),
        "num_dependents": Column(
            "Int64",
            nullable=True,
            checks=Check.greater_than_or_equal_to(0),
        ),
    },
    strict=False,
    coerce=True,
    description="Schema for raw customer records"
)


# Schema for the retention segments table
SEGMENT_TABLE_SCHEMA = DataFrameSchema(
    {
        "customer_id": Column(str, nullable=False, unique=True),
        "churn": Column(int, nullable=False, checks=Check.isin([0, 1])),
        "tenure_months": Column(int, nullable=False),
        "revenue_segment": Column(
            str,
            nullable=False,
            checks=Check.isin(REVENUE_SEGMENTS)
        ),
        "usage_score": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0)
        ),
        "usage_category": Column(
            str,
            nullable=False,
            checks=Check.isin(USAGE_CATEGORIES)
        ),
        "customer_segment": Column(
            str,
            nullable=False,
            checks=Check.isin(CUSTOMER_SEGMENTS)
        ),
    },
    strict=True,
    ordered=True,
    description="Schema for retention segments output"
)


# Schema for the denormalized analytics table
ANALYTICS_SCHEMA = DataFrameSchema(
    {
        "customer_id": Column(str, nullable=False, unique=True),
        "customer_segment": Column(
            str,
            nullable=False,
            checks=Check.isin(CUSTOMER_SEGMENTS)
        ),
        "usage_score": Column(
            float,
            nullable=False,
            checks=Check.greater_than_or_equal_to(0)
        ),
        "usage_category": Column(
            str,
            nullable=False,
            checks=Check.isin(USAGE_CATEGORIES)
        ),
        "revenue_segment": Column(
            str,
            nullable=False,
            checks=Check.isin(REVENUE_SEGMENTS)
        ),
        "tenure_months": Column(int, nullable=False),
        "gender": Column(str, nullable=True, coerce=True),
        "age": Column("Int64", nullable=True, coerce=True),
        "state": Column(str, nullable=True, coerce=True),
        "city": Column(str, nullable=True, coerce=True),
        "estimated_salary": Column(float, nullable=True, coerce=True),
        "churn": Column(int, nullable=False, checks=Check.isin([0, 1])),
        "calls_made": Column(int, nullable=False, checks=Check.greater_than_or_equal_to(0)),
        "sms_sent": Column(int, nullable=False, checks=Check.greater_than_or_equal_to(0)),
        "data_used": Column(float, nullable=False, checks=Check.greater_than_or_equal_to(0)),
    },
    strict=True,
    ordered=True,
    description="Schema for the analytical (gold) customer table"
)


def segment_table_schema(config) -> DataFrameSchema:
    """Segments schema with label checks taken from a custom config."""
    return SEGMENT_TABLE_SCHEMA.update_columns({
        "revenue_segment": {"checks": Check.isin(list(config.revenue_labels))},
        "usage_category": {"checks": Check.isin(list(config.usage_labels))},
        "customer_segment": {"checks": Check.isin(config.customer_segments)},
    })


def analytics_schema(config) -> DataFrameSchema:
    """Analytics schema with label checks taken from a custom config."""
    return ANALYTICS_SCHEMA.update_columns({
        "revenue_segment": {"checks": Check.isin(list(config.revenue_labels))},
        "usage_category": {"checks": Check.isin(list(config.usage_labels))},
        "customer_segment": {"checks": Check.isin(config.customer_segments)},
    })


def validate_raw_records(
    df: pd.DataFrame,
    schema: DataFrameSchema = RAW_CUSTOMER_SCHEMA,
    stage: str = "validate_input",
) -> pd.DataFrame:
    """
    Validate stored records, naming offending customers on failure.

    Collects every violation (lazy validation) and maps failing rows
    back to their customer_id.

    Returns:
        Validated (type-coerced) copy of the input

    Raises:
        InvalidRecordError: If any record violates the schema
    """
    try:
        return schema.validate(df.copy(), lazy=True)
    except SchemaErrors as e:
        failures = e.failure_cases
        rows = failures["index"].dropna()
        customer_ids = df.loc[df.index.isin(rows), "customer_id"].dropna()
        violations = sorted(
            f"{column}: {check}"
            for column, check in failures[["column", "check"]]
            .astype(str)
            .drop_duplicates()
            .itertuples(index=False)
        )
        raise InvalidRecordError(
            f"{len(failures)} schema violation(s) ({'; '.join(violations)})",
            stage=stage,
            customer_ids=customer_ids,
        ) from e
