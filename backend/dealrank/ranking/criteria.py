"""Filter criteria value object and sort modes for deal listing."""

import enum
import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dealrank.core.exceptions import InvalidFilterError
from dealrank.models.deal import ALL_CATEGORIES, DealCategory

DEFAULT_LIMIT = 50
DEFAULT_OFFSET = 0


class SortMode(str, enum.Enum):
    """Requested ordering for a deal listing."""

    POPULAR = "popular"
    RECENT = "recent"
    EXPIRING = "expiring"
    RELEVANCE = "relevance"
    BEST_VALUE = "best_value"
    TRENDING = "trending"


def tokenize_query(query: Optional[str]) -> List[str]:
    """Split a search query into lower-cased, whitespace-delimited terms.

    Empty terms are discarded, so "  Pizza   Hut " gives ["pizza", "hut"].
    """
    if not query:
        return []
    return [term for term in query.lower().split() if term]


class FilterCriteria(BaseModel):
    """Immutable, request-scoped description of which deals to list and how."""

    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    location: Optional[str] = None
    search: Optional[str] = None
    sort_by: Optional[SortMode] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    min_discount: Optional[float] = Field(None, ge=0)
    max_discount: Optional[float] = Field(None, ge=0)
    limit: int = Field(DEFAULT_LIMIT, ge=1)
    offset: int = Field(DEFAULT_OFFSET, ge=0)
    user_id: Optional[uuid.UUID] = None

    @field_validator("category")
    @classmethod
    def known_category(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        normalized = v.strip().lower()
        if normalized == ALL_CATEGORIES:
            return normalized
        try:
            return DealCategory(normalized).value
        except ValueError:
            raise ValueError(f"Unknown category '{v}'")

    @field_validator("location", "search")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v

    @property
    def category_filter(self) -> Optional[str]:
        """Category to filter on, or None when any category matches."""
        if self.category is None or self.category == ALL_CATEGORIES:
            return None
        return self.category

    @property
    def search_terms(self) -> List[str]:
        return tokenize_query(self.search)

    @property
    def effective_sort_mode(self) -> SortMode:
        return self.sort_by or SortMode.RECENT

    def check_bounds(self) -> None:
        """Raise InvalidFilterError if a price or discount range is empty."""
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise InvalidFilterError("price", self.min_price, self.max_price)
        if (
            self.min_discount is not None
            and self.max_discount is not None
            and self.min_discount > self.max_discount
        ):
            raise InvalidFilterError("discount", self.min_discount, self.max_discount)
