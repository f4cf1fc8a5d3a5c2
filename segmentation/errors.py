"""Exceptions raised by the segmentation pipeline."""

from typing import Iterable, Optional

# Cap on ids quoted in error messages
MAX_REPORTED_IDS = 10


class SegmentationError(ValueError):
    """
    Base error for a failed derivation batch.

    Attributes:
        stage: Pipeline stage that failed (e.g. "revenue_segment", "join")
        customer_ids: Offending customer ids, if any
    """

    def __init__(
        self,
        message: str,
        stage: str,
        customer_ids: Optional[Iterable[str]] = None,
    ):
        self.stage = stage
        self.customer_ids = sorted(
            str(cid) for cid in (customer_ids if customer_ids is not None else [])
        )
        if self.customer_ids:
            shown = ", ".join(self.customer_ids[:MAX_REPORTED_IDS])
            extra = len(self.customer_ids) - MAX_REPORTED_IDS
            if extra > 0:
                shown += f" (+{extra} more)"
            message = f"{message} [stage={stage}; customer_id: {shown}]"
        else:
            message = f"{message} [stage={stage}]"
        super().__init__(message)


class UnclassifiableRecordError(SegmentationError):
    """A record matched no branch of a classification table."""


class DataIntegrityError(SegmentationError):
    """Raw and derived tables disagree (orphans, duplicates, row counts)."""


class InvalidRecordError(SegmentationError):
    """Stored records violate the raw customer schema."""
