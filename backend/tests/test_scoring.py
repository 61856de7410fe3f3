"""Tests for the relevance, value and trending scorers."""

import math
from datetime import timedelta

import pytest

from conftest import NOW, build_deal, upvotes
from dealrank.ranking import ScoredDeal
from dealrank.ranking.scoring import (
    discount_percentage,
    relevance_score,
    score_trending,
    score_value,
    trending_score,
    value_score,
)


# ============================================================================
# TESTS: RELEVANCE
# ============================================================================

class TestRelevanceScore:
    """Tests for relevance_score."""

    def test_field_weights_and_phrase_bonus(self):
        deal = build_deal(
            title="Pizza night",
            merchant="Pizza Hut",
            description="Cheap pizza for two",
            category="food",
            created_days_ago=2,
        )

        # 10 + 8 + 5 term hits, 5 + 3 phrase bonus, +2 recency
        assert relevance_score(deal, "pizza", NOW) == 33.0

    def test_category_term_hit(self):
        deal = build_deal(title="Lunch", merchant="Deli", category="food", created_days_ago=60)

        assert relevance_score(deal, "food", NOW) == 3.0

    def test_multi_term_query_scores_each_term(self):
        deal = build_deal(title="Pizza and wings", merchant="Slice", created_days_ago=60)

        # pizza +10, wings +10, "pizza wings" is not a title substring
        assert relevance_score(deal, "pizza wings", NOW) == 20.0

    def test_upvote_bonus_is_capped(self):
        few = build_deal(title="Pizza", created_days_ago=60, upvote_ages=upvotes(4))
        many = build_deal(title="Pizza", created_days_ago=60, upvote_ages=upvotes(30))

        # 10 title + 5 phrase
        assert relevance_score(few, "pizza", NOW) == 15.0 + 2.0
        assert relevance_score(many, "pizza", NOW) == 15.0 + 5.0

    @pytest.mark.parametrize(
        "created_days_ago, bonus",
        [(1, 2.0), (6.9, 2.0), (7, 1.0), (29, 1.0), (30, 0.0), (90, 0.0)],
    )
    def test_recency_bonus(self, created_days_ago, bonus):
        deal = build_deal(title="Pizza", created_days_ago=created_days_ago)

        assert relevance_score(deal, "pizza", NOW) == 15.0 + bonus

    def test_no_match_scores_only_social_and_recency(self):
        deal = build_deal(title="Coffee", merchant="Cafe", created_days_ago=1)

        assert relevance_score(deal, "pizza", NOW) == 2.0


# ============================================================================
# TESTS: VALUE
# ============================================================================

class TestValueScore:
    """Tests for value_score."""

    @pytest.mark.parametrize(
        "discount, expected",
        [(60, 10.0), (50, 10.0), (30, 7.0), (25, 5.0), (10, 3.0), (9.99, 1.0), (0, 1.0)],
    )
    def test_discount_brackets(self, discount, expected):
        deal = build_deal(amount=100, discount=discount, valid_days=30)

        assert value_score(deal, NOW) == expected

    def test_zero_amount_does_not_divide_by_zero(self):
        deal = build_deal(amount=0, discount=15, valid_days=30)

        assert discount_percentage(deal) == 0.0
        score = value_score(deal, NOW)
        assert math.isfinite(score)
        assert score == 1.0

    def test_discount_may_exceed_amount(self):
        deal = build_deal(amount=10, discount=25, valid_days=30)

        assert discount_percentage(deal) == 250.0
        assert value_score(deal, NOW) == 10.0

    def test_upvote_bonus_is_capped(self):
        some = build_deal(amount=100, discount=0, upvote_ages=upvotes(5))
        lots = build_deal(amount=100, discount=0, upvote_ages=upvotes(50))

        assert value_score(some, NOW) == pytest.approx(1.0 + 1.5)
        assert value_score(lots, NOW) == pytest.approx(1.0 + 3.0)

    @pytest.mark.parametrize(
        "valid_days, bonus",
        [(1, 3.0), (3, 3.0), (5, 2.0), (7, 2.0), (10, 1.0), (14, 1.0), (15, 0.0)],
    )
    def test_urgency_bonus(self, valid_days, bonus):
        deal = build_deal(amount=100, discount=0, valid_days=valid_days)

        assert value_score(deal, NOW) == 1.0 + bonus

    def test_monotonic_in_discount(self):
        scores = [
            value_score(build_deal(amount=100, discount=d, valid_days=30), NOW)
            for d in range(0, 101, 5)
        ]

        assert scores == sorted(scores)


# ============================================================================
# TESTS: TRENDING
# ============================================================================

class TestTrendingScore:
    """Tests for trending_score."""

    def test_old_listing_without_upvotes_scores_zero(self):
        assert trending_score(build_deal(created_days_ago=30), NOW) == 0.0

    def test_upvote_within_a_day_counts_in_both_windows(self):
        deal = build_deal(created_days_ago=30, upvote_ages=[timedelta(hours=2)])

        # 2 base + 3 week + 5 day
        assert trending_score(deal, NOW) == 10.0

    def test_upvote_within_a_week(self):
        deal = build_deal(created_days_ago=30, upvote_ages=[timedelta(days=3)])

        assert trending_score(deal, NOW) == 5.0

    def test_old_upvote_counts_only_in_base(self):
        deal = build_deal(created_days_ago=30, upvote_ages=[timedelta(days=20)])

        assert trending_score(deal, NOW) == 2.0

    def test_base_is_capped(self):
        deal = build_deal(created_days_ago=30, upvote_ages=upvotes(15))

        assert trending_score(deal, NOW) == 20.0

    @pytest.mark.parametrize(
        "created_days_ago, bonus",
        [(0, 5.0), (2.9, 5.0), (3, 3.0), (6, 3.0), (7, 1.0), (13, 1.0), (14, 0.0)],
    )
    def test_listing_age_bonus(self, created_days_ago, bonus):
        deal = build_deal(created_days_ago=created_days_ago)

        assert trending_score(deal, NOW) == bonus


# ============================================================================
# TESTS: LIST SCORERS
# ============================================================================

class TestListScorers:
    """Scorers annotate without reordering."""

    def test_score_value_preserves_order(self):
        deals = [
            ScoredDeal(build_deal(amount=100, discount=5)),
            ScoredDeal(build_deal(amount=100, discount=80)),
        ]

        scored = score_value(deals, NOW)

        assert [s.id for s in scored] == [s.id for s in deals]
        assert [s.value_score for s in scored] == [1.0, 10.0]
        assert all(s.relevance_score is None for s in scored)

    def test_score_trending_keeps_earlier_scores(self):
        deal = ScoredDeal(build_deal(created_days_ago=30), value_score=4.0)

        (scored,) = score_trending([deal], NOW)

        assert scored.value_score == 4.0
        assert scored.trending_score == 0.0
