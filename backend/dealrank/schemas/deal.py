"""Deal Pydantic schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dealrank.models.deal import Deal, DealCategory
from dealrank.ranking import ScoredDeal, discount_percentage


class DealResponse(BaseModel):
    """Deal with any ranking scores computed for this request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    merchant: str
    description: str
    category: str
    location: Optional[str] = None
    image_url: Optional[str] = None
    amount: Decimal
    discount: Decimal
    discount_percentage: float = 0.0
    valid_until: datetime
    created_at: datetime
    updated_at: datetime
    creator_id: UUID
    upvote_count: int
    relevance_score: Optional[float] = None
    value_score: Optional[float] = None
    trending_score: Optional[float] = None
    personal_score: Optional[float] = None

    @classmethod
    def from_deal(cls, deal: Deal) -> "DealResponse":
        response = cls.model_validate(deal)
        response.discount_percentage = round(discount_percentage(deal), 2)
        return response

    @classmethod
    def from_scored(cls, scored: ScoredDeal) -> "DealResponse":
        response = cls.from_deal(scored.deal)
        response.relevance_score = scored.relevance_score
        response.value_score = scored.value_score
        response.trending_score = scored.trending_score
        response.personal_score = scored.personal_score
        return response


class DealStatsResponse(BaseModel):
    """Global deal statistics."""

    model_config = ConfigDict(from_attributes=True)

    total_deals: int
    active_deals: int
    total_upvotes: int
    deals_by_category: Dict[str, int] = {}


class DealListResponse(BaseModel):
    """A page of ranked deals with global stats."""

    deals: List[DealResponse]
    stats: DealStatsResponse


class DealCreateRequest(BaseModel):
    """Request schema for creating a deal.

    Either valid_until or expires_at may carry the expiry; when both are
    missing the deal is valid for DEFAULT_DEAL_VALIDITY_DAYS.
    """

    title: str = Field(min_length=1, max_length=200)
    merchant: str = Field(min_length=1, max_length=120)
    description: str = Field(min_length=1)
    category: DealCategory
    amount: Decimal = Field(ge=0)
    discount: Decimal = Field(ge=0)
    valid_until: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    image_url: Optional[str] = Field(None, max_length=1000)

    @property
    def expiry(self) -> Optional[datetime]:
        return self.expires_at or self.valid_until


# Columns that are NOT NULL on the deals table
NON_NULLABLE_UPDATE_FIELDS = (
    "title",
    "merchant",
    "description",
    "category",
    "amount",
    "discount",
    "valid_until",
)


class DealUpdateRequest(BaseModel):
    """Request schema for editing a deal; only provided fields change."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    merchant: Optional[str] = Field(None, min_length=1, max_length=120)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[DealCategory] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    discount: Optional[Decimal] = Field(None, ge=0)
    valid_until: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    image_url: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def required_fields_not_null(self) -> "DealUpdateRequest":
        """Only location and image_url may be cleared with an explicit null."""
        for name in NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> Dict[str, object]:
        data = self.model_dump(exclude_unset=True)
        if isinstance(data.get("category"), DealCategory):
            data["category"] = data["category"].value
        return data


class UpvoteResponse(BaseModel):
    """Result of an upvote toggle."""

    deal_id: UUID
    upvoted: bool
    has_upvoted: bool
    upvote_count: int
