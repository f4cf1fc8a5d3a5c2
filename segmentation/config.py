"""
Segmentation configuration for the retention pipeline.

All usage weights, segment thresholds and labels are defined here for easy
tuning. Business rules:
- Data usage is the primary ARPU driver (65% of the usage score)
- Salary is the revenue proxy (20k / 50k income bands)
- 6 months of tenure separates new customers from established ones
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Literal, Optional, Tuple


@dataclass
class SegmentationConfig:
    """
    Configuration for feature derivation and segmentation.

    Band semantics (both revenue and usage):
    - value <  lower           -> first label
    - lower <= value <= upper  -> second label (inclusive both ends)
    - value >  upper           -> third label
    """

    # === Usage Score ===
    # Weighted composite of engagement counters
    usage_weights: Dict[str, float] = field(default_factory=lambda: {
        "calls_made": 0.25,
        "sms_sent": 0.10,
        "data_used": 0.65,   # dominant: data drives modern telecom ARPU
    })
    score_decimals: int = 4
    # Scale of data_used, matching the NUMERIC(12, 2) raw column
    data_decimals: int = 2

    # === Revenue Segment (estimated_salary) ===
    revenue_bounds: Tuple[float, float] = (20000.0, 50000.0)
    revenue_labels: Tuple[str, str, str] = (
        "Low Income",
        "Middle Income",
        "High Income",
    )
    # "raise": missing/negative salary fails the batch
    # "zero": missing/negative salary is treated as 0 (Low Income)
    invalid_salary_policy: Literal["raise", "zero"] = "raise"

    # === Usage Category (usage_score) ===
    usage_bounds: Tuple[float, float] = (30.0, 75.0)
    usage_labels: Tuple[str, str, str] = ("Low", "Medium", "High")

    # === Customer Lifecycle Segment ===
    new_customer_max_tenure: int = 6    # tenure_months < 6 -> New Customer
    engaged_min_score: float = 30.0     # usage_score >= 30 -> Loyal Customer
    segment_labels: Dict[str, str] = field(default_factory=lambda: {
        "churned": "Churned Customer",
        "new": "New Customer",
        "at_risk": "At Risk",
        "loyal": "Loyal Customer",
    })

    # === Metadata ===
    version: str = "1.0.0"

    def __post_init__(self) -> None:
        # YAML hands back lists
        self.revenue_bounds = tuple(self.revenue_bounds)
        self.revenue_labels = tuple(self.revenue_labels)
        self.usage_bounds = tuple(self.usage_bounds)
        self.usage_labels = tuple(self.usage_labels)

        for name, weight in self.usage_weights.items():
            if weight < 0:
                raise ValueError(
                    f"Usage weight for {name} must be non-negative: {weight}"
                )
        for attr in ("revenue_bounds", "usage_bounds"):
            lower, upper = getattr(self, attr)
            if lower > upper:
                raise ValueError(f"{attr} lower bound exceeds upper: {lower} > {upper}")
        for attr in ("revenue_labels", "usage_labels"):
            if len(getattr(self, attr)) != 3:
                raise ValueError(f"{attr} must define exactly three labels")
        missing = {"churned", "new", "at_risk", "loyal"} - set(self.segment_labels)
        if missing:
            raise ValueError(f"segment_labels missing keys: {missing}")
        if self.invalid_salary_policy not in ("raise", "zero"):
            raise ValueError(
                f"Unknown invalid_salary_policy: {self.invalid_salary_policy!r}"
            )

    @property
    def customer_segments(self) -> list[str]:
        """Customer segment labels in priority order."""
        return [
            self.segment_labels[key]
            for key in ("churned", "new", "at_risk", "loyal")
        ]

    @staticmethod
    def _band(value: float, bounds: Tuple[float, float], labels: Tuple[str, str, str]) -> str:
        lower, upper = bounds
        if value < lower:
            return labels[0]
        if value <= upper:
            return labels[1]
        return labels[2]

    def get_revenue_segment(self, salary: Optional[float]) -> Optional[str]:
        """Map a single salary to its revenue segment (None if unclassifiable)."""
        if salary is None or math.isnan(salary) or salary < 0:
            if self.invalid_salary_policy == "zero":
                salary = 0.0
            else:
                return None
        return self._band(salary, self.revenue_bounds, self.revenue_labels)

    def get_usage_category(self, score: float) -> str:
        """Map a single usage score to its usage category."""
        return self._band(score, self.usage_bounds, self.usage_labels)

    def get_customer_segment(
        self, churn: int, tenure_months: Optional[int], usage_score: float
    ) -> Optional[str]:
        """Map churn, tenure and usage to a lifecycle segment (first match wins)."""
        if churn == 1:
            return self.segment_labels["churned"]
        if churn != 0 or tenure_months is None or tenure_months < 0:
            return None
        if tenure_months < self.new_customer_max_tenure:
            return self.segment_labels["new"]
        if usage_score < self.engaged_min_score:
            return self.segment_labels["at_risk"]
        return self.segment_labels["loyal"]


# Default configuration instance
DEFAULT_CONFIG = SegmentationConfig()
