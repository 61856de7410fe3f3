"""Tests for the personalization overlay."""

from uuid import uuid4

from conftest import build_deal
from dealrank.models import DealUpvote
from dealrank.ranking import AffinityProfile, ScoredDeal, apply_personalization


def _upvote_on(deal):
    return DealUpvote(id=uuid4(), user_id=uuid4(), deal_id=deal.id, deal=deal)


class TestAffinityProfile:
    """Tests for AffinityProfile."""

    def test_from_upvotes(self):
        history = [
            build_deal(category="food", merchant="Pizza Hut"),
            build_deal(category="food", merchant="Cafe"),
            build_deal(category="travel", merchant="Airline"),
        ]

        profile = AffinityProfile.from_upvotes([_upvote_on(d) for d in history])

        assert profile.category_counts == {"food": 2, "travel": 1}
        assert profile.merchants == frozenset({"Pizza Hut", "Cafe", "Airline"})
        assert not profile.is_empty

    def test_empty_history(self):
        profile = AffinityProfile.from_upvotes([])

        assert profile.is_empty
        assert profile.personal_score(build_deal()) == 0.0

    def test_personal_score(self):
        profile = AffinityProfile(category_counts={"food": 3}, merchants=frozenset({"Cafe"}))

        assert profile.personal_score(build_deal(category="food", merchant="Cafe")) == 9.0
        assert profile.personal_score(build_deal(category="food", merchant="Deli")) == 6.0
        assert profile.personal_score(build_deal(category="travel", merchant="Cafe")) == 3.0
        assert profile.personal_score(build_deal(category="travel", merchant="Deli")) == 0.0


class TestApplyPersonalization:
    """Tests for apply_personalization."""

    def test_reorders_by_affinity(self):
        travel = ScoredDeal(build_deal(category="travel"))
        food = ScoredDeal(build_deal(category="food"))
        profile = AffinityProfile(category_counts={"food": 1})

        result = apply_personalization([travel, food], profile)

        assert [s.id for s in result] == [food.id, travel.id]
        assert [s.personal_score for s in result] == [2.0, 0.0]

    def test_ties_keep_base_order(self):
        base = [ScoredDeal(build_deal(category="shopping")) for _ in range(4)]

        result = apply_personalization(base, AffinityProfile())

        assert [s.id for s in result] == [s.id for s in base]

    def test_keeps_base_scores(self):
        deal = ScoredDeal(build_deal(), value_score=7.0)

        (result,) = apply_personalization([deal], AffinityProfile())

        assert result.value_score == 7.0
        assert result.personal_score == 0.0
