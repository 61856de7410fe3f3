"""Order stage: score (when needed) and stable-sort filtered deals.

Python's sorted() is stable, including with reverse=True, so deals with
equal keys keep the relative order the filter stage produced. Pagination
windows rely on this.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar

from dealrank.models.deal import Deal
from dealrank.ranking.criteria import FilterCriteria, SortMode
from dealrank.ranking.scored import ScoredDeal, as_utc
from dealrank.ranking.scoring import score_relevance, score_trending, score_value

T = TypeVar("T")

SortKey = Callable[[ScoredDeal], Any]

# Field sorts: mode -> (key, descending)
FIELD_SORTS: Dict[SortMode, Tuple[SortKey, bool]] = {
    SortMode.POPULAR: (lambda s: s.upvote_count, True),
    SortMode.RECENT: (lambda s: as_utc(s.deal.created_at), True),
    SortMode.EXPIRING: (lambda s: as_utc(s.deal.valid_until), False),
}


def stable_sort(scored: Sequence[ScoredDeal], key: SortKey, descending: bool) -> List[ScoredDeal]:
    return sorted(scored, key=key, reverse=descending)


def rank_deals(
    deals: Sequence[Deal],
    criteria: FilterCriteria,
    now: datetime,
) -> List[ScoredDeal]:
    """Score and order an already-filtered deal list per criteria.sort_by.

    Relevance ordering needs a search string; without one it falls back to
    the default recent ordering.

    Args:
        deals: Output of the filter stage
        criteria: Filter criteria carrying sort mode and search text
        now: Evaluation instant for time-based scores

    Returns:
        Full ordered list (unpaginated) of ScoredDeal
    """
    scored = [ScoredDeal(deal) for deal in deals]
    mode = criteria.effective_sort_mode

    if mode is SortMode.RELEVANCE and criteria.search_terms:
        scored = score_relevance(scored, criteria.search, now)
        return stable_sort(scored, lambda s: s.relevance_score, descending=True)

    if mode is SortMode.BEST_VALUE:
        scored = score_value(scored, now)
        return stable_sort(scored, lambda s: s.value_score, descending=True)

    if mode is SortMode.TRENDING:
        scored = score_trending(scored, now)
        return stable_sort(scored, lambda s: s.trending_score, descending=True)

    key, descending = FIELD_SORTS.get(mode, FIELD_SORTS[SortMode.RECENT])
    return stable_sort(scored, key, descending)


def paginate(items: Sequence[T], offset: int, limit: int) -> List[T]:
    """Offset/limit window over an already-ordered sequence."""
    return list(items[offset:offset + limit])
