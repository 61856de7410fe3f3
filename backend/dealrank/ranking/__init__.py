"""Pure deal ranking engine: filter, score, order, personalize.

Nothing in this package performs I/O. The evaluation instant is always
passed in so results are reproducible.
"""

from dealrank.ranking.criteria import FilterCriteria, SortMode, tokenize_query
from dealrank.ranking.filters import filter_deals, is_active, matches_criteria
from dealrank.ranking.ordering import paginate, rank_deals
from dealrank.ranking.personalization import AffinityProfile, apply_personalization
from dealrank.ranking.scored import ScoredDeal, as_utc
from dealrank.ranking.scoring import (
    discount_percentage,
    relevance_score,
    score_relevance,
    score_trending,
    score_value,
    trending_score,
    value_score,
)

__all__ = [
    "FilterCriteria",
    "SortMode",
    "tokenize_query",
    "filter_deals",
    "is_active",
    "matches_criteria",
    "paginate",
    "rank_deals",
    "AffinityProfile",
    "apply_personalization",
    "ScoredDeal",
    "as_utc",
    "discount_percentage",
    "relevance_score",
    "score_relevance",
    "score_trending",
    "score_value",
    "trending_score",
    "value_score",
]
