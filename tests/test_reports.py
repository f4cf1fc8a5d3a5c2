"""
Tests for retention reports over a small, hand-checked analytics table.
"""

import pandas as pd
import pytest

from segmentation import RetentionReport


@pytest.fixture
def analytics():
    """Six customers covering every segment and revenue tier."""
    rows = [
        ("C1", "Churned Customer", 80.0, "High", "High Income", 12, "Karnataka", 60000.0, 1),
        ("C2", "At Risk", 10.0, "Low", "High Income", 10, "Delhi", 80000.0, 0),
        ("C3", "At Risk", 20.0, "Low", "Middle Income", 6, "Delhi", 30000.0, 0),
        ("C4", "Loyal Customer", 50.0, "Medium", "Low Income", 24, "Karnataka", 15000.0, 0),
        ("C5", "New Customer", 40.0, "Medium", "Middle Income", 2, "Karnataka", 25000.0, 0),
        ("C6", "Churned Customer", 5.0, "Low", "Low Income", 2, "Delhi", 10000.0, 1),
    ]
    return pd.DataFrame(rows, columns=[
        "customer_id", "customer_segment", "usage_score", "usage_category",
        "revenue_segment", "tenure_months", "state", "estimated_salary", "churn",
    ])


@pytest.fixture
def report(analytics):
    return RetentionReport(analytics)


class TestChurnRates:

    def test_overall_churn_rate(self, report):
        assert report.churn_rate() == 33.33

    def test_empty_table_churn_rate(self, analytics):
        """No customers -> 0.0, never a division error."""
        report = RetentionReport(analytics.iloc[0:0])

        assert report.churn_rate() == 0.0
        assert report.revenue_lost() == 0.0

    def test_churn_by_segment(self, report):
        result = report.churn_by_segment()

        assert result["customer_segment"].iloc[0] == "Churned Customer"
        assert result["churn_rate"].iloc[0] == 100.0
        assert result["total_customers"].sum() == 6
        assert set(result["churn_rate"].iloc[1:]) == {0.0}

    def test_churn_by_state_ties_sorted_by_name(self, report):
        result = report.churn_by_state()

        assert result["state"].tolist() == ["Delhi", "Karnataka"]
        assert result["churn_rate"].tolist() == [33.33, 33.33]

    def test_churn_by_revenue_segment(self, report):
        result = report.churn_by_revenue_segment().set_index("revenue_segment")

        assert result.loc["High Income", "churn_rate"] == 50.0
        assert result.loc["Low Income", "churn_rate"] == 50.0
        assert result.loc["Middle Income", "churn_rate"] == 0.0
        assert result.loc["High Income", "churned_customers"] == 1

    def test_churn_by_usage_category(self, report):
        result = report.churn_by_usage_category().set_index("usage_category")

        assert result.loc["High", "churn_rate"] == 100.0
        assert result.loc["Low", "churn_rate"] == 33.33
        assert result.loc["Medium", "churn_rate"] == 0.0

    def test_churn_by_tenure_ascending(self, report):
        result = report.churn_by_tenure()

        assert result["tenure_months"].tolist() == [2, 6, 10, 12, 24]
        assert result.loc[0, "total_customers"] == 2
        assert result.loc[0, "churned_customers"] == 1


class TestRevenueReports:

    def test_revenue_lost(self, report):
        """Sum of salary over churned customers only."""
        assert report.revenue_lost() == 70000.0

    def test_high_value_at_risk(self, report):
        result = report.high_value_at_risk()

        assert result["customer_id"].tolist() == ["C2"]
        assert (result["customer_segment"] == "At Risk").all()

    def test_revenue_saving_targets_ordered_by_salary(self, report):
        result = report.revenue_saving_targets()

        assert result["customer_id"].tolist() == ["C2", "C3"]

    def test_revenue_saving_targets_limit(self, report):
        assert len(report.revenue_saving_targets(limit=1)) == 1


class TestDistribution:

    def test_segment_distribution(self, report):
        result = report.segment_distribution()
        counts = dict(zip(result["customer_segment"], result["customer_count"]))

        assert counts == {
            "Churned Customer": 2,
            "At Risk": 2,
            "Loyal Customer": 1,
            "New Customer": 1,
        }

    def test_kpis(self, report):
        kpis = report.kpis().iloc[0]

        assert kpis["total_customers"] == 6
        assert kpis["churn_rate_percentage"] == 33.33
        assert kpis["total_revenue_loss"] == 70000.0

    def test_all_reports_keyed(self, report):
        reports = report.all(limit=1)

        assert set(reports) == {
            "kpis",
            "churn_by_segment",
            "churn_by_state",
            "churn_by_revenue_segment",
            "churn_by_usage_category",
            "churn_by_tenure",
            "high_value_at_risk",
            "revenue_saving_targets",
            "segment_distribution",
        }
        assert len(reports["revenue_saving_targets"]) == 1

    def test_reports_on_pipeline_output(self, engine, builder, sample_data):
        """Segment counts in the report agree with the engine result."""
        result = engine.segment(sample_data)
        report = RetentionReport(builder.build(result.df, result.segments))
        distribution = report.segment_distribution()

        counts = dict(zip(distribution["customer_segment"], distribution["customer_count"]))
        expected = {k: v for k, v in result.segment_counts().items() if v}
        assert counts == expected
