"""Scoring functions for relevance, value and trending orderings.

Each score is an unnormalized sum of fixed weighted terms. The weights are
part of the observable ranking behaviour, so they live here as literals
rather than in configuration. Scorers annotate a list without reordering it.
"""

from datetime import datetime, timedelta
from typing import List, Sequence

from dealrank.models.deal import Deal
from dealrank.ranking.criteria import tokenize_query
from dealrank.ranking.scored import ScoredDeal, as_utc, days_between

# Relevance weights
TITLE_TERM_WEIGHT = 10.0
MERCHANT_TERM_WEIGHT = 8.0
DESCRIPTION_TERM_WEIGHT = 5.0
CATEGORY_TERM_WEIGHT = 3.0
TITLE_PHRASE_BONUS = 5.0
MERCHANT_PHRASE_BONUS = 3.0
RELEVANCE_UPVOTE_WEIGHT = 0.5
RELEVANCE_UPVOTE_CAP = 5.0

# Value weights
VALUE_UPVOTE_WEIGHT = 0.3
VALUE_UPVOTE_CAP = 3.0

# (minimum discount percentage, base score), checked top-down
DISCOUNT_BRACKETS = (
    (50.0, 10.0),
    (30.0, 7.0),
    (20.0, 5.0),
    (10.0, 3.0),
)
DISCOUNT_FLOOR_SCORE = 1.0

# (max days until expiry, bonus), inclusive
URGENCY_BRACKETS = (
    (3.0, 3.0),
    (7.0, 2.0),
    (14.0, 1.0),
)

# Trending weights
TRENDING_UPVOTE_WEIGHT = 2.0
TRENDING_UPVOTE_CAP = 20.0
WEEK_UPVOTE_WEIGHT = 3.0
DAY_UPVOTE_WEIGHT = 5.0

# (max listing age in days, bonus), exclusive
LISTING_AGE_BRACKETS = (
    (3.0, 5.0),
    (7.0, 3.0),
    (14.0, 1.0),
)


def discount_percentage(deal: Deal) -> float:
    """Discount as a percentage of the original amount; 0 when amount is 0."""
    amount = float(deal.amount)
    if amount <= 0:
        return 0.0
    return float(deal.discount) / amount * 100


def relevance_score(deal: Deal, query: str, now: datetime) -> float:
    """Text-match score of a deal for a search query."""
    title = deal.title.lower()
    merchant = deal.merchant.lower()
    description = (deal.description or "").lower()
    category = deal.category.lower()

    score = 0.0
    for term in tokenize_query(query):
        if term in title:
            score += TITLE_TERM_WEIGHT
        if term in merchant:
            score += MERCHANT_TERM_WEIGHT
        if term in description:
            score += DESCRIPTION_TERM_WEIGHT
        if term in category:
            score += CATEGORY_TERM_WEIGHT

    # Whole query, untokenized
    phrase = query.lower()
    if phrase in title:
        score += TITLE_PHRASE_BONUS
    if phrase in merchant:
        score += MERCHANT_PHRASE_BONUS

    score += min(deal.upvote_count * RELEVANCE_UPVOTE_WEIGHT, RELEVANCE_UPVOTE_CAP)

    age_days = days_between(deal.created_at, now)
    if age_days < 7:
        score += 2.0
    elif age_days < 30:
        score += 1.0

    return score


def value_score(deal: Deal, now: datetime) -> float:
    """Discount-driven score with social proof and expiry urgency."""
    pct = discount_percentage(deal)
    score = DISCOUNT_FLOOR_SCORE
    for threshold, base in DISCOUNT_BRACKETS:
        if pct >= threshold:
            score = base
            break

    score += min(deal.upvote_count * VALUE_UPVOTE_WEIGHT, VALUE_UPVOTE_CAP)

    days_left = days_between(now, deal.valid_until)
    for max_days, bonus in URGENCY_BRACKETS:
        if days_left <= max_days:
            score += bonus
            break

    return score


def trending_score(deal: Deal, now: datetime) -> float:
    """Engagement-momentum score from upvote recency and listing age."""
    now = as_utc(now)
    week_ago = now - timedelta(days=7)
    day_ago = now - timedelta(days=1)

    score = min(deal.upvote_count * TRENDING_UPVOTE_WEIGHT, TRENDING_UPVOTE_CAP)

    # An upvote from the last 24h lands in both buckets and is rewarded twice.
    # Kept as-is because it shapes current rankings; revisit whether the
    # overlap is intended before changing either weight.
    week_count = sum(1 for upvote in deal.upvotes if as_utc(upvote.created_at) > week_ago)
    day_count = sum(1 for upvote in deal.upvotes if as_utc(upvote.created_at) > day_ago)
    score += week_count * WEEK_UPVOTE_WEIGHT
    score += day_count * DAY_UPVOTE_WEIGHT

    age_days = days_between(deal.created_at, now)
    for max_days, bonus in LISTING_AGE_BRACKETS:
        if age_days < max_days:
            score += bonus
            break

    return score


def score_relevance(scored: Sequence[ScoredDeal], query: str, now: datetime) -> List[ScoredDeal]:
    return [s.with_scores(relevance_score=relevance_score(s.deal, query, now)) for s in scored]


def score_value(scored: Sequence[ScoredDeal], now: datetime) -> List[ScoredDeal]:
    return [s.with_scores(value_score=value_score(s.deal, now)) for s in scored]


def score_trending(scored: Sequence[ScoredDeal], now: datetime) -> List[ScoredDeal]:
    return [s.with_scores(trending_score=trending_score(s.deal, now)) for s in scored]
