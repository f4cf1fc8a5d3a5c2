"""
Read-only business reports over the analytics table.

Each report answers one retention KPI used by the dashboards:
churn rate overall and by segment, geography, revenue tier, usage
and tenure; revenue lost to churn; and at-risk customers to target.
"""

from typing import Optional

import pandas as pd

from .config import SegmentationConfig, DEFAULT_CONFIG


class RetentionReport:
    """
    Aggregate queries over the analytical (gold) customer table.

    Usage:
        report = RetentionReport(analytics_df)
        report.churn_rate()
        report.churn_by_segment()
        report.revenue_saving_targets(limit=20)
    """

    def __init__(
        self,
        analytics: pd.DataFrame,
        config: Optional[SegmentationConfig] = None,
    ):
        self.df = analytics
        self.config = config or DEFAULT_CONFIG

    def churn_rate(self) -> float:
        """Overall churn percentage (0.0 for an empty table)."""
        if self.df.empty:
            return 0.0
        return round(float(self.df["churn"].mean() * 100), 2)

    def _churn_by(self, column: str) -> pd.DataFrame:
        grouped = (
            self.df.groupby(column)
            .agg(
                total_customers=("customer_id", "count"),
                churned_customers=("churn", "sum"),
            )
            .reset_index()
        )
        grouped["churned_customers"] = grouped["churned_customers"].astype(int)
        grouped["churn_rate"] = (
            grouped["churned_customers"] * 100.0 / grouped["total_customers"]
        ).round(2)
        return grouped.sort_values(
            ["churn_rate", column], ascending=[False, True], kind="stable"
        ).reset_index(drop=True)

    def churn_by_segment(self) -> pd.DataFrame:
        """Which customer segments contribute most to churn?"""
        return self._churn_by("customer_segment")

    def churn_by_state(self) -> pd.DataFrame:
        """Are certain regions experiencing higher attrition?"""
        return self._churn_by("state")

    def churn_by_revenue_segment(self) -> pd.DataFrame:
        """How does churn vary across income segments?"""
        return self._churn_by("revenue_segment")

    def churn_by_usage_category(self) -> pd.DataFrame:
        """How does usage behavior correlate with churn?"""
        return self._churn_by("usage_category")

    def churn_by_tenure(self) -> pd.DataFrame:
        """Customer and churn counts per tenure month, ascending."""
        grouped = (
            self.df.groupby("tenure_months")
            .agg(
                total_customers=("customer_id", "count"),
                churned_customers=("churn", "sum"),
            )
            .reset_index()
            .sort_values("tenure_months")
            .reset_index(drop=True)
        )
        grouped["churned_customers"] = grouped["churned_customers"].astype(int)
        return grouped

    def revenue_lost(self) -> float:
        """Total estimated salary of churned customers."""
        churned = self.df.loc[self.df["churn"] == 1, "estimated_salary"]
        return round(float(churned.sum()), 2)

    def _at_risk(self) -> pd.DataFrame:
        return self.df[
            self.df["customer_segment"] == self.config.segment_labels["at_risk"]
        ]

    def high_value_at_risk(self) -> pd.DataFrame:
        """High-income customers currently at risk, highest salary first."""
        at_risk = self._at_risk()
        high_income = self.config.revenue_labels[2]
        return (
            at_risk[at_risk["revenue_segment"] == high_income][[
                "customer_id",
                "estimated_salary",
                "usage_score",
                "usage_category",
                "tenure_months",
                "customer_segment",
            ]]
            .sort_values(["estimated_salary", "customer_id"], ascending=[False, True])
            .reset_index(drop=True)
        )

    def revenue_saving_targets(self, limit: int = 50) -> pd.DataFrame:
        """At-risk customers to target first to minimize revenue loss."""
        return (
            self._at_risk()[[
                "customer_id",
                "estimated_salary",
                "usage_score",
                "tenure_months",
            ]]
            .sort_values(["estimated_salary", "customer_id"], ascending=[False, True])
            .head(limit)
            .reset_index(drop=True)
        )

    def segment_distribution(self) -> pd.DataFrame:
        """Customer count per lifecycle segment, largest first."""
        return (
            self.df["customer_segment"]
            .value_counts()
            .rename_axis("customer_segment")
            .reset_index(name="customer_count")
        )

    def kpis(self) -> pd.DataFrame:
        """Headline KPIs as a one-row frame."""
        return pd.DataFrame([{
            "total_customers": len(self.df),
            "churn_rate_percentage": self.churn_rate(),
            "total_revenue_loss": self.revenue_lost(),
        }])

    def all(self, limit: int = 50) -> dict[str, pd.DataFrame]:
        """All reports keyed by name (for artifact export)."""
        return {
            "kpis": self.kpis(),
            "churn_by_segment": self.churn_by_segment(),
            "churn_by_state": self.churn_by_state(),
            "churn_by_revenue_segment": self.churn_by_revenue_segment(),
            "churn_by_usage_category": self.churn_by_usage_category(),
            "churn_by_tenure": self.churn_by_tenure(),
            "high_value_at_risk": self.high_value_at_risk(),
            "revenue_saving_targets": self.revenue_saving_targets(limit),
            "segment_distribution": self.segment_distribution(),
        }
