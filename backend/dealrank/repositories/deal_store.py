"""Datastore collaborator for the ranking engine.

DealStore is the boundary the services depend on; SQLAlchemyDealStore is
the async SQLAlchemy implementation used by the API. The store does only
coarse filtering (category, location, expiry). Search, price and discount
filtering happen in the ranking engine.
"""

import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Protocol

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dealrank.core.exceptions import ConcurrentModificationError, DatastoreUnavailableError
from dealrank.models.deal import Deal
from dealrank.models.deal_upvote import DealUpvote
from dealrank.ranking.scored import as_utc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DealQuery:
    """Coarse bulk-read filter pushed down to the datastore."""

    valid_after: datetime
    category: Optional[str] = None
    location_contains: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0


class DealStore(Protocol):
    """Protocol for the deal/upvote datastore."""

    async def find_deals(self, query: DealQuery) -> List[Deal]:
        """Active deals matching query, newest first, upvotes loaded."""
        ...

    async def get_deal(self, deal_id: uuid.UUID) -> Optional[Deal]:
        ...

    async def create_deal(self, **fields: Any) -> Deal:
        ...

    async def update_deal(self, deal_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[Deal]:
        ...

    async def delete_deal(self, deal_id: uuid.UUID) -> bool:
        ...

    async def find_upvotes_by_user(self, user_id: uuid.UUID) -> List[DealUpvote]:
        """A user's upvotes with their deal loaded."""
        ...

    async def find_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> Optional[DealUpvote]:
        ...

    async def create_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> DealUpvote:
        """Insert an upvote; raises ConcurrentModificationError if one already exists."""
        ...

    async def delete_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
        ...

    async def count_deals(self, active_only: bool, now: datetime) -> int:
        ...

    async def count_upvotes(self) -> int:
        ...

    async def count_deals_by_category(self, active_only: bool, now: datetime) -> Dict[str, int]:
        ...


@contextmanager
def _datastore_errors(operation: str) -> Iterator[None]:
    """Translate connection-level SQLAlchemy errors into DatastoreUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        logger.error("datastore_unavailable", operation=operation, error=str(e))
        raise DatastoreUnavailableError(operation, str(e)) from e


class SQLAlchemyDealStore:
    """DealStore backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        """Initialize the store.

        Args:
            db: Async database session
        """
        self.db = db
        self.logger = logger.bind(store="sqlalchemy_deal_store")

    def _deal_select(self):
        # populate_existing: every read reflects the database, not the identity map
        return (
            select(Deal)
            .options(selectinload(Deal.upvotes))
            .execution_options(populate_existing=True)
        )

    async def find_deals(self, query: DealQuery) -> List[Deal]:
        stmt = self._deal_select().where(Deal.valid_until > as_utc(query.valid_after))

        if query.category:
            stmt = stmt.where(Deal.category == query.category)

        if query.location_contains:
            stmt = stmt.where(Deal.location.ilike(f"%{query.location_contains}%"))

        stmt = stmt.order_by(Deal.created_at.desc(), Deal.id)

        if query.offset:
            stmt = stmt.offset(query.offset)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        with _datastore_errors("find_deals"):
            result = await self.db.execute(stmt)
            deals = list(result.scalars().all())

        self.logger.debug("deals_loaded", count=len(deals), category=query.category)
        return deals

    async def get_deal(self, deal_id: uuid.UUID) -> Optional[Deal]:
        with _datastore_errors("get_deal"):
            result = await self.db.execute(self._deal_select().where(Deal.id == deal_id))
            return result.scalar_one_or_none()

    async def create_deal(self, **fields: Any) -> Deal:
        fields.setdefault("id", uuid.uuid4())
        fields["valid_until"] = as_utc(fields["valid_until"])
        deal = Deal(**fields)
        with _datastore_errors("create_deal"):
            self.db.add(deal)
            await self.db.commit()
        return await self.get_deal(deal.id)

    async def update_deal(self, deal_id: uuid.UUID, changes: Dict[str, Any]) -> Optional[Deal]:
        deal = await self.get_deal(deal_id)
        if deal is None:
            return None

        if changes.get("valid_until") is not None:
            changes = {**changes, "valid_until": as_utc(changes["valid_until"])}

        for name, value in changes.items():
            setattr(deal, name, value)

        with _datastore_errors("update_deal"):
            await self.db.commit()
        return await self.get_deal(deal_id)

    async def delete_deal(self, deal_id: uuid.UUID) -> bool:
        deal = await self.get_deal(deal_id)
        if deal is None:
            return False
        with _datastore_errors("delete_deal"):
            await self.db.delete(deal)
            await self.db.commit()
        return True

    async def find_upvotes_by_user(self, user_id: uuid.UUID) -> List[DealUpvote]:
        stmt = (
            select(DealUpvote)
            .options(selectinload(DealUpvote.deal))
            .where(DealUpvote.user_id == user_id)
            .order_by(DealUpvote.created_at)
            .execution_options(populate_existing=True)
        )
        with _datastore_errors("find_upvotes_by_user"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def find_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> Optional[DealUpvote]:
        stmt = select(DealUpvote).where(
            DealUpvote.user_id == user_id,
            DealUpvote.deal_id == deal_id,
        )
        with _datastore_errors("find_upvote"):
            result = await self.db.execute(stmt)
            return result.scalar_one_or_none()

    async def create_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> DealUpvote:
        upvote = DealUpvote(user_id=user_id, deal_id=deal_id)
        with _datastore_errors("create_upvote"):
            self.db.add(upvote)
            try:
                await self.db.flush()
            except IntegrityError as e:
                await self.db.rollback()
                raise ConcurrentModificationError("DealUpvote", f"{user_id}:{deal_id}") from e
            await self.db.commit()
        return upvote

    async def delete_upvote(self, user_id: uuid.UUID, deal_id: uuid.UUID) -> bool:
        stmt = delete(DealUpvote).where(
            DealUpvote.user_id == user_id,
            DealUpvote.deal_id == deal_id,
        )
        with _datastore_errors("delete_upvote"):
            result = await self.db.execute(stmt)
            await self.db.commit()
        return result.rowcount > 0

    async def count_deals(self, active_only: bool, now: datetime) -> int:
        stmt = select(func.count(Deal.id))
        if active_only:
            stmt = stmt.where(Deal.valid_until > as_utc(now))
        with _datastore_errors("count_deals"):
            result = await self.db.execute(stmt)
            return result.scalar() or 0

    async def count_upvotes(self) -> int:
        with _datastore_errors("count_upvotes"):
            result = await self.db.execute(select(func.count(DealUpvote.id)))
            return result.scalar() or 0

    async def count_deals_by_category(self, active_only: bool, now: datetime) -> Dict[str, int]:
        stmt = select(Deal.category, func.count(Deal.id)).group_by(Deal.category)
        if active_only:
            stmt = stmt.where(Deal.valid_until > as_utc(now))
        with _datastore_errors("count_deals_by_category"):
            result = await self.db.execute(stmt)
            return {category: count for category, count in result.all()}
