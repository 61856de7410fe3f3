"""SQLAlchemy models for dealrank.

All models are imported here so metadata.create_all can discover them.
"""

from dealrank.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin, utcnow
from dealrank.models.deal import ALL_CATEGORIES, Deal, DealCategory
from dealrank.models.deal_upvote import DealUpvote

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "utcnow",
    "ALL_CATEGORIES",
    "Deal",
    "DealCategory",
    "DealUpvote",
]
