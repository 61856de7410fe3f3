"""Personalization overlay: re-rank an ordered list by a user's affinity.

The overlay runs only when a caller asks for it explicitly. It takes a list
that is already ordered by some base sort and stable-sorts it by
personal_score, so ties keep the base ordering.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Sequence

from dealrank.models.deal import Deal
from dealrank.models.deal_upvote import DealUpvote
from dealrank.ranking.scored import ScoredDeal

CATEGORY_AFFINITY_WEIGHT = 2.0
MERCHANT_AFFINITY_BONUS = 3.0


@dataclass(frozen=True)
class AffinityProfile:
    """What a user has endorsed before: category counts and merchant names."""

    category_counts: Dict[str, int] = field(default_factory=dict)
    merchants: FrozenSet[str] = frozenset()

    @classmethod
    def from_upvotes(cls, upvotes: Iterable[DealUpvote]) -> "AffinityProfile":
        """Build a profile from upvotes whose deal relationship is loaded."""
        categories: Counter = Counter()
        merchants = set()
        for upvote in upvotes:
            categories[upvote.deal.category] += 1
            merchants.add(upvote.deal.merchant)
        return cls(category_counts=dict(categories), merchants=frozenset(merchants))

    @property
    def is_empty(self) -> bool:
        return not self.category_counts and not self.merchants

    def personal_score(self, deal: Deal) -> float:
        score = self.category_counts.get(deal.category, 0) * CATEGORY_AFFINITY_WEIGHT
        if deal.merchant in self.merchants:
            score += MERCHANT_AFFINITY_BONUS
        return score


def apply_personalization(
    ranked: Sequence[ScoredDeal],
    profile: AffinityProfile,
) -> List[ScoredDeal]:
    """Annotate personal_score and reorder by it, keeping earlier scores."""
    rescored = [s.with_scores(personal_score=profile.personal_score(s.deal)) for s in ranked]
    return sorted(rescored, key=lambda s: s.personal_score, reverse=True)
