"""Customer lifecycle segment classification component."""

import pandas as pd

from .base import BaseClassifier


class CustomerSegmentClassifier(BaseClassifier):
    """
    Classify customers into lifecycle segments.

    Rules are a strict decision tree (first match wins):
    1. churn == 1                           -> Churned Customer
    2. churn == 0, tenure < 6               -> New Customer
    3. churn == 0, tenure >= 6, usage < 30  -> At Risk
    4. churn == 0, tenure >= 6, usage >= 30 -> Loyal Customer

    Churn always takes precedence; tenure is checked before usage.
    """

    name = "customer_segment"

    @property
    def required_columns(self) -> list[str]:
        return ["churn", "tenure_months", "usage_score"]

    def derive(self, df: pd.DataFrame) -> pd.Series:
        """Map churn, tenure and usage score to a lifecycle segment."""
        self.validate(df)
        churn = df["churn"]
        tenure = pd.to_numeric(df["tenure_months"], errors="coerce")
        usage = df["usage_score"]

        labels = self.config.segment_labels
        max_new = self.config.new_customer_max_tenure
        min_engaged = self.config.engaged_min_score

        churned = churn == 1
        active = churn == 0
        new = active & (tenure >= 0) & (tenure < max_new)
        established = active & (tenure >= max_new)

        conditions = [
            churned,
            new,
            established & (usage < min_engaged),
            established & (usage >= min_engaged),
        ]
        choices = [
            labels["churned"],
            labels["new"],
            labels["at_risk"],
            labels["loyal"],
        ]
        return self._select(df, conditions, choices).rename(self.name)
