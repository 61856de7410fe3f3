"""Deal listing service: filter, score, order and personalize deals.

This service wires the pure ranking engine to the datastore. It handles
deal listing under every sort mode, the personalized feed, search, global
statistics and the deal lifecycle (create, edit, delete).
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import structlog

from dealrank.config import settings
from dealrank.core.exceptions import NotFoundError
from dealrank.models.base import utcnow
from dealrank.models.deal import Deal
from dealrank.ranking import (
    AffinityProfile,
    FilterCriteria,
    ScoredDeal,
    SortMode,
    apply_personalization,
    as_utc,
    filter_deals,
    paginate,
    rank_deals,
)
from dealrank.repositories.deal_store import DealQuery, DealStore

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class DealStats:
    """Global deal statistics, independent of any request filter."""

    total_deals: int
    active_deals: int
    total_upvotes: int
    deals_by_category: Dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class DealListResult:
    """One page of ranked deals plus global stats.

    total is the number of deals that matched the filter before pagination.
    """

    deals: List[ScoredDeal]
    total: int
    stats: DealStats


class DealService:
    """Service for listing and managing deals.

    Every call reads a fresh snapshot from the store and recomputes scores;
    nothing is cached between calls.
    """

    def __init__(self, store: DealStore, clock: Optional[Clock] = None):
        """Initialize deal service.

        Args:
            store: Deal datastore
            clock: Returns the evaluation instant, defaults to UTC now
        """
        self.store = store
        self.clock = clock or utcnow
        self.logger = logger.bind(service="deal_service")

    async def _rank(self, criteria: FilterCriteria, now: datetime) -> List[ScoredDeal]:
        """Fetch, filter and order the full candidate set (no pagination)."""
        pool = await self.store.find_deals(DealQuery(
            valid_after=now,
            category=criteria.category_filter,
            location_contains=criteria.location,
        ))
        filtered = filter_deals(pool, criteria, now)
        return rank_deals(filtered, criteria, now)

    async def _personalize(self, ranked: List[ScoredDeal], user_id: uuid.UUID) -> List[ScoredDeal]:
        """Personalization overlay stage over an already-ordered list."""
        upvotes = await self.store.find_upvotes_by_user(user_id)
        profile = AffinityProfile.from_upvotes(upvotes)

        self.logger.info(
            "personalizing_deals",
            user_id=str(user_id),
            history=len(upvotes),
            categories=len(profile.category_counts),
            merchants=len(profile.merchants),
        )

        return apply_personalization(ranked, profile)

    async def get_deals(self, criteria: FilterCriteria) -> DealListResult:
        """List deals matching criteria, ranked and paginated.

        When a user id is given and the ordering is the default (no sort
        mode, or an explicit recent) the list is personalized for that user.
        Any other sort mode is honoured as-is. Scores are computed over the
        full filtered set before offset/limit are applied.

        Args:
            criteria: Filter, sort and pagination criteria

        Returns:
            DealListResult with the requested page and global stats
        """
        now = self.clock()
        personalize = (
            criteria.user_id is not None
            and criteria.effective_sort_mode is SortMode.RECENT
        )

        self.logger.info(
            "fetching_deals",
            category=criteria.category_filter,
            search=criteria.search,
            sort=criteria.effective_sort_mode.value,
            limit=criteria.limit,
            offset=criteria.offset,
            personalized=personalize,
        )

        ranked = await self._rank(criteria, now)
        if personalize:
            ranked = await self._personalize(ranked, criteria.user_id)

        page = paginate(ranked, criteria.offset, criteria.limit)
        stats = await self.get_stats(now)

        self.logger.info(
            "deals_fetched",
            count=len(page),
            total=len(ranked),
        )

        return DealListResult(deals=page, total=len(ranked), stats=stats)

    async def get_personalized_deals(self, user_id: uuid.UUID, limit: int = 20) -> List[ScoredDeal]:
        """Get the personalized feed for a user.

        Takes the newest limit * PERSONALIZED_CANDIDATE_FACTOR active deals,
        re-ranks them by the user's affinity and returns the top limit.
        """
        now = self.clock()
        ranked = await self._rank(FilterCriteria(), now)
        candidates = ranked[:limit * settings.PERSONALIZED_CANDIDATE_FACTOR]
        personalized = await self._personalize(candidates, user_id)
        return personalized[:limit]

    async def search_deals(
        self,
        query: str,
        criteria: Optional[FilterCriteria] = None,
    ) -> List[ScoredDeal]:
        """Search deals by text, ordered by relevance.

        Args:
            query: Free-text search query
            criteria: Optional extra filters and pagination

        Returns:
            Page of matching deals with relevance_score populated
        """
        base = criteria or FilterCriteria()
        result = await self.get_deals(
            base.model_copy(update={"search": query, "sort_by": SortMode.RELEVANCE})
        )
        return result.deals

    async def get_stats(self, now: Optional[datetime] = None) -> DealStats:
        """Global stats: total/active deals, total upvotes, active deals per category."""
        now = now or self.clock()
        return DealStats(
            total_deals=await self.store.count_deals(active_only=False, now=now),
            active_deals=await self.store.count_deals(active_only=True, now=now),
            total_upvotes=await self.store.count_upvotes(),
            deals_by_category=await self.store.count_deals_by_category(active_only=True, now=now),
        )

    async def get_deals_by_price_range(
        self,
        min_price: float,
        max_price: float,
        limit: int = 50,
    ) -> List[ScoredDeal]:
        """Deals priced within [min_price, max_price], best value first."""
        result = await self.get_deals(FilterCriteria(
            min_price=min_price,
            max_price=max_price,
            limit=limit,
            sort_by=SortMode.BEST_VALUE,
        ))
        return result.deals

    async def get_deals_by_discount_range(
        self,
        min_discount: float,
        max_discount: float,
        limit: int = 50,
    ) -> List[ScoredDeal]:
        """Deals whose discount lies within [min_discount, max_discount], best value first."""
        result = await self.get_deals(FilterCriteria(
            min_discount=min_discount,
            max_discount=max_discount,
            limit=limit,
            sort_by=SortMode.BEST_VALUE,
        ))
        return result.deals

    async def get_deals_by_category(self, category: str) -> List[ScoredDeal]:
        """All active deals in a category, newest first."""
        return await self._rank(
            FilterCriteria(category=category, sort_by=SortMode.RECENT), self.clock()
        )

    async def get_deals_by_location(self, location: str) -> List[ScoredDeal]:
        """All active deals whose location contains the given text, newest first."""
        return await self._rank(
            FilterCriteria(location=location, sort_by=SortMode.RECENT), self.clock()
        )

    async def get_trending_deals(self, limit: int = 10) -> List[ScoredDeal]:
        """Active deals upvoted in the last 7 days, most upvoted first."""
        now = self.clock()
        week_ago = as_utc(now) - timedelta(days=7)
        ranked = await self._rank(FilterCriteria(sort_by=SortMode.POPULAR), now)
        recent = [
            s for s in ranked
            if any(as_utc(upvote.created_at) >= week_ago for upvote in s.deal.upvotes)
        ]
        return recent[:limit]

    async def get_deal(self, deal_id: uuid.UUID) -> Deal:
        """Get a single deal with its upvotes.

        Raises:
            NotFoundError: If no deal has this id
        """
        deal = await self.store.get_deal(deal_id)
        if deal is None:
            raise NotFoundError("Deal", str(deal_id))
        return deal

    async def create_deal(
        self,
        creator_id: uuid.UUID,
        title: str,
        merchant: str,
        description: str,
        category: str,
        amount: Decimal,
        discount: Decimal,
        valid_until: Optional[datetime] = None,
        location: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Deal:
        """Create a new deal.

        Args:
            creator_id: Id of the authoring user
            title: Deal title
            merchant: Merchant name
            description: Free-text description
            category: DealCategory value
            amount: Original price
            discount: Absolute amount saved
            valid_until: Expiry instant, defaults to DEFAULT_DEAL_VALIDITY_DAYS from now
            location: Optional location text
            image_url: Optional image URL

        Returns:
            The created Deal
        """
        if valid_until is None:
            valid_until = self.clock() + timedelta(days=settings.DEFAULT_DEAL_VALIDITY_DAYS)

        deal = await self.store.create_deal(
            creator_id=creator_id,
            title=title,
            merchant=merchant,
            description=description,
            category=category,
            amount=amount,
            discount=discount,
            valid_until=valid_until,
            location=location,
            image_url=image_url,
        )

        self.logger.info(
            "deal_created",
            deal_id=str(deal.id),
            creator_id=str(creator_id),
            category=category,
        )
        return deal

    async def update_deal(self, deal_id: uuid.UUID, changes: Dict[str, Any]) -> Deal:
        """Apply an administrative edit to a deal.

        Raises:
            NotFoundError: If no deal has this id
        """
        deal = await self.store.update_deal(deal_id, changes)
        if deal is None:
            raise NotFoundError("Deal", str(deal_id))

        self.logger.info("deal_updated", deal_id=str(deal_id), fields=sorted(changes))
        return deal

    async def delete_deal(self, deal_id: uuid.UUID) -> None:
        """Delete a deal and its upvotes.

        Raises:
            NotFoundError: If no deal has this id
        """
        deleted = await self.store.delete_deal(deal_id)
        if not deleted:
            raise NotFoundError("Deal", str(deal_id))

        self.logger.info("deal_deleted", deal_id=str(deal_id))
