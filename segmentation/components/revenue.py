"""Revenue segment classification component."""

import logging

import pandas as pd

from .base import BaseClassifier
from ..errors import UnclassifiableRecordError

logger = logging.getLogger(__name__)


class RevenueSegmentClassifier(BaseClassifier):
    """
    Classify customers by estimated salary (the ARPU proxy).

    Segments (default):
    - < 20,000: Low Income
    - 20,000-50,000 (inclusive): Middle Income
    - > 50,000: High Income

    Missing or negative salaries fall outside the domain. With
    invalid_salary_policy="raise" they fail the batch; with "zero"
    they are scored as 0 and land in Low Income.
    """

    name = "revenue_segment"

    @property
    def required_columns(self) -> list[str]:
        return ["estimated_salary"]

    def derive(self, df: pd.DataFrame) -> pd.Series:
        """Map salaries to revenue segments."""
        self.validate(df)
        salary = pd.to_numeric(df["estimated_salary"], errors="coerce")

        invalid = salary.isna() | (salary < 0)
        if invalid.any():
            if self.config.invalid_salary_policy == "raise":
                raise UnclassifiableRecordError(
                    f"{invalid.sum()} record(s) have missing or negative estimated_salary",
                    stage=self.name,
                    customer_ids=list(df.loc[invalid, "customer_id"])
                    if "customer_id" in df
                    else list(df.index[invalid]),
                )
            logger.warning(
                "Treating %d missing/negative estimated_salary value(s) as 0",
                int(invalid.sum()),
            )
            salary = salary.mask(invalid, 0.0)

        return self._band(
            df,
            salary,
            self.config.revenue_bounds,
            self.config.revenue_labels,
        ).rename(self.name)
