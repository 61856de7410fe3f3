"""Vote service for toggling per-user deal upvotes."""

import enum
import uuid
from dataclasses import dataclass
from typing import Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from dealrank.core.exceptions import (
    ConcurrentModificationError,
    DatastoreUnavailableError,
    NotFoundError,
)
from dealrank.repositories.deal_store import DealStore

logger = structlog.get_logger(__name__)


class UpvoteStatus(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    FAILED = "failed"


@dataclass(frozen=True)
class UpvoteResult:
    """Outcome of an upvote toggle.

    FAILED means the datastore errored and the upvote state is unknown;
    callers should not assume nothing changed.
    """

    deal_id: uuid.UUID
    status: UpvoteStatus
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is not UpvoteStatus.FAILED

    @property
    def upvoted(self) -> Optional[bool]:
        """True if added, False if removed, None if the toggle failed."""
        if self.status is UpvoteStatus.FAILED:
            return None
        return self.status is UpvoteStatus.ADDED


class VoteService:
    """Handles deal upvotes with one upvote per (user, deal)."""

    def __init__(self, store: DealStore):
        self.store = store
        self.logger = logger.bind(service="vote_service")

    async def toggle_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> UpvoteResult:
        """Add the user's upvote on a deal, or remove it if already present.

        A unique-constraint violation on insert means a concurrent request
        already added the upvote, so the toggle is retried as a removal. If
        that removal finds nothing the conflict had another cause and the
        toggle reports FAILED.

        Raises:
            NotFoundError: If the deal does not exist
        """
        try:
            deal = await self.store.get_deal(deal_id)
        except (DatastoreUnavailableError, SQLAlchemyError) as e:
            return self._failed(user_id, deal_id, e)

        if deal is None:
            raise NotFoundError("Deal", str(deal_id))

        try:
            existing = await self.store.find_upvote(user_id, deal_id)
            if existing is not None:
                await self.store.delete_upvote(user_id, deal_id)
                status = UpvoteStatus.REMOVED
            else:
                try:
                    await self.store.create_upvote(user_id, deal_id)
                    status = UpvoteStatus.ADDED
                except ConcurrentModificationError as e:
                    self.logger.warning(
                        "upvote_insert_conflict",
                        user_id=str(user_id),
                        deal_id=str(deal_id),
                    )
                    # Nothing to remove means the conflict was not a duplicate upvote
                    if not await self.store.delete_upvote(user_id, deal_id):
                        return self._failed(user_id, deal_id, e)
                    status = UpvoteStatus.REMOVED
        except (DatastoreUnavailableError, SQLAlchemyError) as e:
            return self._failed(user_id, deal_id, e)

        self.logger.info(
            "upvote_toggled",
            user_id=str(user_id),
            deal_id=str(deal_id),
            status=status.value,
        )
        return UpvoteResult(deal_id=deal_id, status=status)

    async def has_user_upvoted(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
        """Whether the user currently has an upvote on the deal."""
        return await self.store.find_upvote(user_id, deal_id) is not None

    def _failed(self, user_id: uuid.UUID, deal_id: uuid.UUID, error: Exception) -> UpvoteResult:
        self.logger.error(
            "upvote_toggle_failed",
            user_id=str(user_id),
            deal_id=str(deal_id),
            error=str(error),
        )
        return UpvoteResult(deal_id=deal_id, status=UpvoteStatus.FAILED, error=str(error))
