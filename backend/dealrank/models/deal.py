"""Deal model representing a merchant offer shared by a user."""

import enum
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, Numeric, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealrank.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from dealrank.models.deal_upvote import DealUpvote


class DealCategory(str, enum.Enum):
    """Closed set of deal categories."""

    FOOD = "food"
    ENTERTAINMENT = "entertainment"
    SHOPPING = "shopping"
    HEALTH = "health"
    TRANSPORTATION = "transportation"
    TRAVEL = "travel"
    EDUCATION = "education"


# Filter value meaning "any category"; never stored on a deal.
ALL_CATEGORIES = "all"


class Deal(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A merchant offer.

    Scores are never stored here: relevance, value, trending and personal
    scores are computed per request by the ranking engine.
    """

    __tablename__ = "deals"

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False, comment="Deal title")
    merchant: Mapped[str] = mapped_column(String(120), nullable=False, comment="Merchant name")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
        index=True,
        comment="One of DealCategory values"
    )
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Economics
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Original price"
    )
    discount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0"),
        comment="Absolute amount saved (may exceed amount on bad data)"
    )

    # Validity
    valid_until: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Deal expiry instant"
    )

    # Ownership (identity lives in the external auth service)
    creator_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    __table_args__ = (
        Index("idx_deals_valid_until", "valid_until"),
        Index("idx_deals_category_valid_until", "category", "valid_until"),
    )

    # Relationships
    upvotes: Mapped[list["DealUpvote"]] = relationship(
        back_populates="deal", cascade="all, delete-orphan"
    )

    @property
    def upvote_count(self) -> int:
        return len(self.upvotes)

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title[:50]}', merchant='{self.merchant}', amount={self.amount})>"
