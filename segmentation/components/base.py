"""Base classes for derivation components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Tuple

import numpy as np
import pandas as pd

from ..errors import UnclassifiableRecordError

if TYPE_CHECKING:
    from ..config import SegmentationConfig


class BaseComponent(ABC):
    """
    Abstract base class for derivation components.

    Each component computes a single derived column from a
    DataFrame using vectorized pandas operations. Components
    never modify the frame they are given.
    """

    name: str = "base"

    def __init__(self, config: "SegmentationConfig"):
        """
        Initialize component with configuration.

        Args:
            config: SegmentationConfig instance with thresholds and weights
        """
        self.config = config

    @abstractmethod
    def derive(self, df: pd.DataFrame) -> pd.Series:
        """
        Calculate the derived column for all rows.

        Must be implemented by subclasses using vectorized operations.

        Args:
            df: DataFrame with required columns

        Returns:
            Series aligned to df.index
        """
        pass

    @property
    @abstractmethod
    def required_columns(self) -> list[str]:
        """List of columns required by this component."""
        pass

    def validate(self, df: pd.DataFrame) -> None:
        """Validate required columns exist."""
        missing = set(self.required_columns) - set(df.columns)
        if missing:
            raise ValueError(
                f"{self.__class__.__name__} requires columns: {missing}"
            )


class BaseClassifier(BaseComponent):
    """
    Base for total label classifiers.

    Rows that match no condition are reported as an
    UnclassifiableRecordError instead of receiving a null label.
    """

    def _select(
        self,
        df: pd.DataFrame,
        conditions: list[pd.Series],
        choices: list[str],
    ) -> pd.Series:
        """First matching condition wins; unmatched rows raise."""
        # Nullable dtypes compare to NA; treat NA as "no match"
        condlist = [
            np.asarray(pd.Series(cond).fillna(False), dtype=bool)
            for cond in conditions
        ]
        labels = pd.Series(
            np.select(condlist, choices, default=None),
            index=df.index,
            dtype=object,
        )
        unmatched = labels.isna()
        if unmatched.any():
            ids = df.loc[unmatched, "customer_id"] if "customer_id" in df else df.index[unmatched]
            raise UnclassifiableRecordError(
                f"{unmatched.sum()} record(s) match no {self.name} rule",
                stage=self.name,
                customer_ids=list(ids),
            )
        return labels

    def _band(
        self,
        df: pd.DataFrame,
        values: pd.Series,
        bounds: Tuple[float, float],
        labels: Tuple[str, str, str],
    ) -> pd.Series:
        """Three-band split: v < lower | lower <= v <= upper | v > upper."""
        lower, upper = bounds
        conditions = [
            values < lower,
            (values >= lower) & (values <= upper),
            values > upper,
        ]
        return self._select(df, conditions, list(labels))
