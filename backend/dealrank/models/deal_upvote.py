"""DealUpvote model for per-user deal endorsements."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dealrank.models.base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from dealrank.models.deal import Deal


class DealUpvote(UUIDPrimaryKeyMixin, Base):
    """One user's endorsement of one deal.

    Toggling twice hard-deletes the row; absence means "not upvoted".
    """

    __tablename__ = "deal_upvotes"

    user_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    deal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "deal_id", name="uq_deal_upvote_user_deal"),
    )

    # Relationships
    deal: Mapped["Deal"] = relationship(back_populates="upvotes")

    def __repr__(self) -> str:
        return f"<DealUpvote(user={self.user_id}, deal={self.deal_id})>"
