"""Filter stage: reduce a deal pool to the deals matching a FilterCriteria."""

from datetime import datetime
from typing import List, Optional, Sequence

import structlog

from dealrank.core.exceptions import InvalidFilterError
from dealrank.models.deal import Deal
from dealrank.ranking.criteria import FilterCriteria
from dealrank.ranking.scored import as_utc

logger = structlog.get_logger(__name__)


def is_active(deal: Deal, now: datetime) -> bool:
    """A deal is active while its validity window has not elapsed."""
    return as_utc(deal.valid_until) > as_utc(now)


def matches_search(deal: Deal, terms: Sequence[str]) -> bool:
    """Every term must appear in at least one of title, merchant, description, category."""
    fields = (
        deal.title.lower(),
        deal.merchant.lower(),
        (deal.description or "").lower(),
        deal.category.lower(),
    )
    return all(any(term in field for field in fields) for term in terms)


def _within(value: float, lower: Optional[float], upper: Optional[float]) -> bool:
    if lower is not None and value < lower:
        return False
    if upper is not None and value > upper:
        return False
    return True


def matches_criteria(deal: Deal, criteria: FilterCriteria, now: datetime) -> bool:
    """Check a single deal against every filter in criteria, expiry included."""
    if not is_active(deal, now):
        return False

    category = criteria.category_filter
    if category is not None and deal.category != category:
        return False

    if criteria.location is not None:
        if not deal.location or criteria.location.lower() not in deal.location.lower():
            return False

    terms = criteria.search_terms
    if terms and not matches_search(deal, terms):
        return False

    if not _within(float(deal.amount), criteria.min_price, criteria.max_price):
        return False

    if not _within(float(deal.discount), criteria.min_discount, criteria.max_discount):
        return False

    return True


def filter_deals(
    deals: Sequence[Deal],
    criteria: FilterCriteria,
    now: datetime,
) -> List[Deal]:
    """Return the deals satisfying criteria, preserving input order.

    Expired deals are always dropped. Empty ranges (min > max) yield an
    empty list rather than an error.

    Args:
        deals: Candidate pool
        criteria: Filter criteria
        now: Evaluation instant for the expiry check

    Returns:
        Matching deals in their original relative order
    """
    try:
        criteria.check_bounds()
    except InvalidFilterError as e:
        logger.info("invalid_filter_bounds", field=e.field, error=e.message)
        return []

    matched = [deal for deal in deals if matches_criteria(deal, criteria, now)]

    logger.debug(
        "deals_filtered",
        candidates=len(deals),
        matched=len(matched),
        category=criteria.category_filter,
        search=criteria.search,
    )
    return matched
