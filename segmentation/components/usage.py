"""Usage score feature derivation and usage category classification."""

import logging

import pandas as pd

from .base import BaseClassifier, BaseComponent

logger = logging.getLogger(__name__)


# Counters that must be integers after clamping
INTEGER_COUNTERS = ("calls_made", "sms_sent")


class UsageScoreDeriver(BaseComponent):
    """
    Weighted engagement score from usage counters.

    Negative counters are data errors, not negative engagement:
    they are clamped to 0 before weighting. Null or absent
    counters count as 0 so no customer drops out of scoring.

    Weights (default):
    - calls_made: 0.25
    - sms_sent: 0.10
    - data_used: 0.65
    """

    name = "usage_score"

    @property
    def required_columns(self) -> list[str]:
        # Absent counters are filled with 0
        return []

    @property
    def counters(self) -> list[str]:
        return list(self.config.usage_weights)

    def clamp(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Return the usage counters with nulls and negatives set to 0.

        Volume counters are also rounded to the stored scale
        (data_decimals) so the score is computed on the values that
        are written back.

        Args:
            df: DataFrame with (some of) the usage counters

        Returns:
            New DataFrame holding one clamped column per counter
        """
        clamped = pd.DataFrame(index=df.index)
        for col in self.counters:
            if col not in df.columns:
                logger.warning("Usage counter %s absent; treating as 0", col)
                values = pd.Series(0, index=df.index)
            else:
                values = pd.to_numeric(df[col], errors="coerce")

            n_invalid = int((values.isna() | (values < 0)).sum())
            if n_invalid:
                logger.info("Clamped %d null/negative %s value(s) to 0", n_invalid, col)

            values = values.fillna(0).clip(lower=0)
            if col in INTEGER_COUNTERS:
                values = values.astype("int64")
            else:
                values = values.astype(float).round(self.config.data_decimals)
            clamped[col] = values
        return clamped

    def derive(self, df: pd.DataFrame) -> pd.Series:
        """Calculate usage score from (already clamped) counters."""
        clamped = self.clamp(df)
        score = sum(
            clamped[col] * weight
            for col, weight in self.config.usage_weights.items()
        )
        return (
            pd.Series(score, index=df.index, dtype=float)
            .round(self.config.score_decimals)
            .rename(self.name)
        )


class UsageCategoryClassifier(BaseClassifier):
    """
    Bucket customers by usage score.

    Categories (default):
    - < 30: Low
    - 30-75 (inclusive): Medium
    - > 75: High
    """

    name = "usage_category"

    @property
    def required_columns(self) -> list[str]:
        return ["usage_score"]

    def derive(self, df: pd.DataFrame) -> pd.Series:
        """Map usage scores to usage categories."""
        self.validate(df)
        return self._band(
            df,
            df["usage_score"],
            self.config.usage_bounds,
            self.config.usage_labels,
        ).rename(self.name)
