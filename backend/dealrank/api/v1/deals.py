"""Deals API endpoints."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError

from dealrank.config import settings
from dealrank.core.exceptions import DatastoreUnavailableError, NotFoundError
from dealrank.dependencies import (
    get_current_user_id,
    get_deal_service,
    get_optional_user_id,
    get_vote_service,
)
from dealrank.ranking import FilterCriteria, SortMode
from dealrank.schemas import (
    ApiResponse,
    DealCreateRequest,
    DealListResponse,
    DealResponse,
    DealStatsResponse,
    DealUpdateRequest,
    PaginationMeta,
    UpvoteResponse,
)
from dealrank.services.deal_service import DealService
from dealrank.services.vote_service import VoteService

router = APIRouter()


def _not_found(e: NotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


def _criteria(**fields) -> FilterCriteria:
    try:
        return FilterCriteria(**fields)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        )


@router.get("", response_model=ApiResponse)
async def list_deals(
    category: Optional[str] = Query(None, description="Category, or 'all'"),
    location: Optional[str] = Query(None, description="Location substring (case-insensitive)"),
    search: Optional[str] = Query(None, description="Free-text search terms"),
    sort_by: Optional[SortMode] = Query(None, description="Sort mode"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    min_discount: Optional[float] = Query(None, ge=0),
    max_discount: Optional[float] = Query(None, ge=0),
    limit: int = Query(50, ge=1, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    user_id: Optional[uuid.UUID] = Depends(get_optional_user_id),
    service: DealService = Depends(get_deal_service),
):
    """List active deals with filtering, ranking and pagination.

    Sort options:
    - recent: Newest first (default)
    - popular: Most upvoted first
    - expiring: Soonest expiry first
    - relevance: Best text match for `search` first
    - best_value: Highest value score first
    - trending: Highest recent-engagement score first

    Authenticated callers that keep the default recent ordering get it
    personalized to their upvote history.
    """
    criteria = _criteria(
        category=category,
        location=location,
        search=search,
        sort_by=sort_by,
        min_price=min_price,
        max_price=max_price,
        min_discount=min_discount,
        max_discount=max_discount,
        limit=limit,
        offset=offset,
        user_id=user_id,
    )

    result = await service.get_deals(criteria)

    return ApiResponse(
        status="success",
        data=DealListResponse(
            deals=[DealResponse.from_scored(s) for s in result.deals],
            stats=DealStatsResponse.model_validate(result.stats),
        ),
        meta=PaginationMeta(offset=offset, limit=limit, total=result.total),
    )


@router.get("/search", response_model=ApiResponse)
async def search_deals(
    q: str = Query(..., min_length=1, description="Search query"),
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    limit: int = Query(50, ge=1, le=settings.MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
    service: DealService = Depends(get_deal_service),
):
    """Search deals, ordered by relevance score."""
    criteria = _criteria(
        category=category,
        location=location,
        min_price=min_price,
        max_price=max_price,
        limit=limit,
        offset=offset,
    )

    deals = await service.search_deals(q, criteria)

    return ApiResponse(
        status="success",
        data=[DealResponse.from_scored(s) for s in deals],
    )


@router.get("/personalized", response_model=ApiResponse)
async def personalized_deals(
    limit: int = Query(20, ge=1, le=settings.MAX_PAGE_LIMIT),
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: DealService = Depends(get_deal_service),
):
    """Deals re-ranked by the caller's upvote history. Requires authentication."""
    deals = await service.get_personalized_deals(user_id, limit=limit)

    return ApiResponse(
        status="success",
        data=[DealResponse.from_scored(s) for s in deals],
    )


@router.get("/stats", response_model=ApiResponse)
async def deal_stats(service: DealService = Depends(get_deal_service)):
    """Global deal statistics (not scoped to any filter)."""
    stats = await service.get_stats()

    return ApiResponse(status="success", data=DealStatsResponse.model_validate(stats))


@router.get("/trending", response_model=ApiResponse)
async def trending_deals(
    limit: int = Query(10, ge=1, le=50),
    service: DealService = Depends(get_deal_service),
):
    """Active deals upvoted in the last 7 days, most upvoted first."""
    deals = await service.get_trending_deals(limit=limit)

    return ApiResponse(
        status="success",
        data=[DealResponse.from_scored(s) for s in deals],
    )


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_deal(
    body: DealCreateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: DealService = Depends(get_deal_service),
):
    """Create a deal. Requires authentication."""
    deal = await service.create_deal(
        creator_id=user_id,
        title=body.title,
        merchant=body.merchant,
        description=body.description,
        category=body.category.value,
        amount=body.amount,
        discount=body.discount,
        valid_until=body.expiry,
        location=body.location,
        image_url=body.image_url,
    )
    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.get("/{deal_id}", response_model=ApiResponse)
async def get_deal(
    deal_id: uuid.UUID,
    service: DealService = Depends(get_deal_service),
):
    """Get deal details by ID."""
    try:
        deal = await service.get_deal(deal_id)
    except NotFoundError as e:
        raise _not_found(e)

    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.patch("/{deal_id}", response_model=ApiResponse)
async def update_deal(
    deal_id: uuid.UUID,
    body: DealUpdateRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: DealService = Depends(get_deal_service),
):
    """Edit a deal. Only its creator may edit it."""
    try:
        deal = await service.get_deal(deal_id)
        if deal.creator_id != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the deal creator")
        deal = await service.update_deal(deal_id, body.changes())
    except NotFoundError as e:
        raise _not_found(e)

    return ApiResponse(status="success", data=DealResponse.from_deal(deal))


@router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deal(
    deal_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: DealService = Depends(get_deal_service),
):
    """Delete a deal. Only its creator may delete it."""
    try:
        deal = await service.get_deal(deal_id)
        if deal.creator_id != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the deal creator")
        await service.delete_deal(deal_id)
    except NotFoundError as e:
        raise _not_found(e)


@router.get("/{deal_id}/upvote", response_model=ApiResponse)
async def get_upvote_status(
    deal_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    votes: VoteService = Depends(get_vote_service),
):
    """Whether the current user has upvoted a deal."""
    has_upvoted = await votes.has_user_upvoted(user_id, deal_id)
    return ApiResponse(status="success", data={"has_upvoted": has_upvoted})


@router.post("/{deal_id}/upvote", response_model=ApiResponse)
async def toggle_upvote(
    deal_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    votes: VoteService = Depends(get_vote_service),
    service: DealService = Depends(get_deal_service),
):
    """Toggle the current user's upvote on a deal. Requires authentication.

    Upvoting an already-upvoted deal removes the upvote. A 503 means the
    upvote state is unknown; clients should refetch rather than assume.
    """
    try:
        result = await votes.toggle_upvote(user_id, deal_id)
    except NotFoundError as e:
        raise _not_found(e)

    if not result.succeeded:
        # Upvote state is unknown; answered as a retryable 503
        raise DatastoreUnavailableError("toggle_upvote", result.error or "unknown error")

    try:
        deal = await service.get_deal(deal_id)
        has_upvoted = await votes.has_user_upvoted(user_id, deal_id)
    except NotFoundError as e:
        raise _not_found(e)

    return ApiResponse(
        status="success",
        data=UpvoteResponse(
            deal_id=deal_id,
            upvoted=result.upvoted,
            has_upvoted=has_upvoted,
            upvote_count=deal.upvote_count,
        ),
    )
