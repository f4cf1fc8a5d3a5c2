"""
Integration tests for SegmentationEngine.
"""

import time

import pandas as pd
import pandera as pa
import pytest

from conftest import make_customer
from segmentation import SegmentationEngine, SegmentationConfig
from segmentation.engine import SEGMENT_COLUMNS, generate_sample_data
from segmentation.errors import UnclassifiableRecordError


class TestSegmentationEngine:
    """Integration tests for the main engine class."""

    def test_segment_adds_all_derived_columns(self, engine, sample_data):
        """Result should include usage score and all three segments."""
        result = engine.segment(sample_data)

        for col in ["usage_score", "usage_category", "revenue_segment", "customer_segment"]:
            assert col in result.df.columns

    def test_segments_projection_columns(self, engine, sample_data):
        """segments matches the retention segments table layout."""
        result = engine.segment(sample_data)

        assert list(result.segments.columns) == SEGMENT_COLUMNS
        assert len(result.segments) == len(sample_data)

    def test_concrete_usage_scenario(self, engine):
        """calls 100, sms 50, data 10 -> 36.5 -> Medium."""
        result = engine.segment(pd.DataFrame([make_customer()]))
        row = result.df.iloc[0]

        assert row["usage_score"] == 36.5
        assert row["usage_category"] == "Medium"
        assert row["revenue_segment"] == "Middle Income"
        assert row["customer_segment"] == "Loyal Customer"

    def test_edge_cases(self, engine, edge_cases):
        """Boundary records land in the expected segments."""
        result = engine.segment(edge_cases).df.set_index("customer_id")

        assert result.loc["EDGE_CHURNED_NEW", "customer_segment"] == "Churned Customer"
        assert result.loc["EDGE_NEW", "customer_segment"] == "New Customer"
        assert result.loc["EDGE_AT_RISK", "customer_segment"] == "At Risk"
        assert result.loc["EDGE_LOYAL", "customer_segment"] == "Loyal Customer"
        assert result.loc["EDGE_LOYAL", "usage_score"] == 30.0
        assert result.loc["EDGE_LOYAL", "usage_category"] == "Medium"
        assert result.loc["EDGE_NEGATIVE", "usage_score"] == 0.0
        assert result.loc["EDGE_NEGATIVE", "customer_segment"] == "At Risk"
        assert result.loc["EDGE_SALARY_20K", "revenue_segment"] == "Middle Income"
        assert result.loc["EDGE_SALARY_50K", "revenue_segment"] == "Middle Income"
        assert result.loc["EDGE_SALARY_HIGH", "revenue_segment"] == "High Income"

    def test_counters_clamped_in_output(self, engine, edge_cases):
        """The new record version carries the clamped counters."""
        result = engine.segment(edge_cases).df.set_index("customer_id")
        row = result.loc["EDGE_NEGATIVE"]

        assert row["calls_made"] == 0
        assert row["sms_sent"] == 0
        assert row["data_used"] == 0.0

    def test_input_not_modified(self, engine, edge_cases):
        """Segmenting never mutates the caller's frame."""
        original = edge_cases.copy()
        engine.segment(edge_cases)

        pd.testing.assert_frame_equal(edge_cases, original)

    def test_totality(self, engine, sample_data, default_config):
        """Every record gets a non-null label from each enumeration."""
        df = engine.segment(sample_data).df

        assert df["revenue_segment"].isin(default_config.revenue_labels).all()
        assert df["usage_category"].isin(default_config.usage_labels).all()
        assert df["customer_segment"].isin(default_config.customer_segments).all()
        assert df[["revenue_segment", "usage_category", "customer_segment"]].notna().all().all()

    def test_usage_score_non_negative(self, engine, sample_data):
        """Sample data contains negative counters; scores stay >= 0."""
        assert (sample_data["calls_made"] < 0).any()
        df = engine.segment(sample_data).df

        assert (df["usage_score"] >= 0).all()

    def test_row_order_preserved(self, engine, sample_data):
        """Output rows follow input order."""
        df = engine.segment(sample_data).df

        assert df["customer_id"].tolist() == sample_data["customer_id"].tolist()

    def test_missing_column_raises_error(self, engine):
        """Missing required columns should raise ValueError."""
        bad_data = pd.DataFrame({"customer_id": ["TEST"]})

        with pytest.raises(ValueError, match="Missing required columns"):
            engine.segment(bad_data)

    def test_schema_violation_raises(self, engine):
        """Duplicate ids are rejected by the input schema."""
        df = pd.DataFrame([make_customer(), make_customer()])

        with pytest.raises(pa.errors.SchemaError):
            engine.segment(df)

    def test_fractional_tenure_fails_batch(self, engine):
        df = pd.DataFrame([make_customer(customer_id="PART_MONTH", tenure_months=5.9)])

        with pytest.raises(pa.errors.SchemaError):
            engine.segment(df)

    def test_tenure_output_is_integer(self, engine, sample_data):
        df = engine.segment(sample_data).df

        assert df["tenure_months"].dtype == "int64"

    def test_negative_salary_fails_batch(self, engine):
        """Default policy: invalid salary aborts with the offending id."""
        df = pd.DataFrame([
            make_customer(customer_id="GOOD"),
            make_customer(customer_id="NEG_SALARY", estimated_salary=-50),
        ])

        with pytest.raises(UnclassifiableRecordError, match="NEG_SALARY"):
            engine.segment(df)

    def test_negative_salary_zero_policy(self):
        """Lenient policy: invalid salary is Low Income."""
        engine = SegmentationEngine(SegmentationConfig(invalid_salary_policy="zero"))
        df = pd.DataFrame([make_customer(customer_id="NEG_SALARY", estimated_salary=-50)])

        result = engine.segment(df)
        assert result.df["revenue_segment"].iloc[0] == "Low Income"

    def test_get_segment_filters_correctly(self, engine, edge_cases):
        """get_segment returns only the requested segment."""
        result = engine.segment(edge_cases)
        at_risk = result.get_segment("At Risk")

        assert len(at_risk) > 0
        assert (at_risk["customer_segment"] == "At Risk").all()

    def test_get_segment_unknown_label(self, engine, edge_cases):
        """Unknown segment labels are rejected."""
        result = engine.segment(edge_cases)

        with pytest.raises(ValueError, match="Unknown customer segment"):
            result.get_segment("VIP")

    def test_segment_counts_cover_all_segments(self, engine, edge_cases):
        """Counts include zero entries and sum to the row count."""
        counts = engine.segment(edge_cases).segment_counts()

        assert set(counts) == {"Churned Customer", "New Customer", "At Risk", "Loyal Customer"}
        assert sum(counts.values()) == len(edge_cases)

    def test_summary_returns_dataframe(self, engine, sample_data):
        """summary() should return aggregated stats."""
        summary = engine.segment(sample_data).summary()

        assert isinstance(summary, pd.DataFrame)
        assert "count" in summary.columns
        assert "avg_usage_score" in summary.columns

    def test_empty_dataframe(self, engine):
        """Empty DataFrame should return empty result."""
        df = pd.DataFrame(columns=list(make_customer()))
        result = engine.segment(df)

        assert len(result.df) == 0

    def test_vectorized_performance(self, engine):
        """Segmenting 10k customers should complete in <2 seconds."""
        large_data = generate_sample_data(n_customers=10000, seed=123)

        start = time.time()
        result = engine.segment(large_data)
        elapsed = time.time() - start

        assert elapsed < 2.0, f"Segmentation took {elapsed:.2f}s, expected <2s"
        assert len(result.df) == 10000


class TestParallelSegmentation:
    """Sharded segmentation must match the serial result."""

    def test_parallel_matches_serial(self, engine):
        df = generate_sample_data(n_customers=500, seed=3)

        serial = engine.segment(df).df
        sharded = engine.segment(df, n_workers=2, parallel_threshold=100).df

        pd.testing.assert_frame_equal(serial, sharded)

    def test_below_threshold_runs_serial(self, engine, sample_data):
        result = engine.segment(sample_data, n_workers=4, parallel_threshold=10_000)

        assert len(result.df) == len(sample_data)


class TestSegmentSingle:
    """Tests for segmenting individual customers."""

    def test_segment_single_returns_dict(self, engine):
        """segment_single should return score and segments."""
        result = engine.segment_single(make_customer())

        assert result == {
            "usage_score": 36.5,
            "usage_category": "Medium",
            "revenue_segment": "Middle Income",
            "customer_segment": "Loyal Customer",
        }

    def test_churn_precedence_single(self, engine):
        """churn=1, tenure=3, high usage -> Churned Customer."""
        result = engine.segment_single(make_customer(
            churn=1, tenure_months=3, calls_made=360, sms_sent=0, data_used=0.0,
        ))

        assert result["usage_score"] == 90.0
        assert result["customer_segment"] == "Churned Customer"

    def test_score_just_below_threshold_stays_low(self, engine):
        """A score just under 30 is never rounded up into Medium."""
        result = engine.segment_single(make_customer(
            calls_made=0, sms_sent=0, data_used=46.1538, tenure_months=12,
        ))

        assert result["usage_score"] < 30
        assert result["usage_category"] == "Low"
        assert result["customer_segment"] == "At Risk"

    def test_new_customer_single(self, engine):
        """churn=0, tenure=2 -> New Customer."""
        result = engine.segment_single(make_customer(churn=0, tenure_months=2))

        assert result["customer_segment"] == "New Customer"


class TestSegmentationConfig:
    """Tests for configuration validation and scalar helpers."""

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            SegmentationConfig(usage_weights={"calls_made": -0.25})

    def test_inverted_bounds_rejected(self):
        with pytest.raises(ValueError, match="usage_bounds"):
            SegmentationConfig(usage_bounds=(75, 30))

    def test_unknown_policy_rejected(self):
        with pytest.raises(ValueError, match="invalid_salary_policy"):
            SegmentationConfig(invalid_salary_policy="ignore")

    def test_missing_segment_label_rejected(self):
        with pytest.raises(ValueError, match="segment_labels"):
            SegmentationConfig(segment_labels={"churned": "Lost"})

    def test_yaml_lists_become_tuples(self):
        config = SegmentationConfig(revenue_bounds=[20000, 50000])
        assert config.revenue_bounds == (20000, 50000)

    @pytest.mark.parametrize("salary,expected", [
        (19999.99, "Low Income"),
        (20000, "Middle Income"),
        (20000.01, "Middle Income"),
        (50000, "Middle Income"),
        (50000.01, "High Income"),
        (-50, None),
        (None, None),
    ])
    def test_get_revenue_segment(self, default_config, salary, expected):
        assert default_config.get_revenue_segment(salary) == expected

    def test_get_revenue_segment_zero_policy(self):
        config = SegmentationConfig(invalid_salary_policy="zero")
        assert config.get_revenue_segment(-50) == "Low Income"
        assert config.get_revenue_segment(None) == "Low Income"

    @pytest.mark.parametrize("score,expected", [
        (29.99, "Low"), (30, "Medium"), (75, "Medium"), (75.01, "High"),
    ])
    def test_get_usage_category(self, default_config, score, expected):
        assert default_config.get_usage_category(score) == expected

    def test_get_customer_segment(self, default_config):
        assert default_config.get_customer_segment(1, 3, 90) == "Churned Customer"
        assert default_config.get_customer_segment(0, 2, 90) == "New Customer"
        assert default_config.get_customer_segment(0, 6, 29.9) == "At Risk"
        assert default_config.get_customer_segment(0, 6, 30) == "Loyal Customer"
        assert default_config.get_customer_segment(2, 6, 30) is None
