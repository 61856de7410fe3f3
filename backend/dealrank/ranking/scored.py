"""Scored deal wrapper and time helpers used across the ranking stages."""

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from dealrank.models.deal import Deal

SECONDS_PER_DAY = 24 * 60 * 60


def as_utc(value: datetime) -> datetime:
    """Return value as an aware UTC datetime.

    SQLite hands back naive datetimes; those were written as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (as_utc(end) - as_utc(start)).total_seconds() / SECONDS_PER_DAY


@dataclass(frozen=True)
class ScoredDeal:
    """A deal annotated with request-scoped ranking scores.

    Scores are None until the matching scorer has run.
    """

    deal: Deal
    relevance_score: Optional[float] = None
    value_score: Optional[float] = None
    trending_score: Optional[float] = None
    personal_score: Optional[float] = None

    @property
    def id(self) -> uuid.UUID:
        return self.deal.id

    @property
    def upvote_count(self) -> int:
        return self.deal.upvote_count

    def with_scores(self, **scores: float) -> "ScoredDeal":
        return dataclasses.replace(self, **scores)
