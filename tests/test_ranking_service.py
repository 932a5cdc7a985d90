from datetime import datetime, timezone

import pytest

from imoscore.models import (
    Listing,
    RankingOptions,
    ScoreComponents,
    ScoringResult,
    SearchCriteria,
    TemporalFactors,
    UserBehavior,
    WeightConfig,
)
from imoscore.ranking import RankingService
from imoscore.scoring import BaseScoringEngine, ScoringEngine


class FixedScoreEngine(BaseScoringEngine):
    """Asigna a cada listing el score de una tabla fija."""

    def __init__(self, scores: dict[str, float]):
        self.scores = scores
        self.weights = WeightConfig(compatibility=1.0, behavior=0.0, temporal=0.0)

    def calculate_score(self, listing, criteria=None, behavior=None, temporal=None, now=None):
        score = self.scores.get(listing.id, 0.0)
        return ScoringResult(
            listing_id=listing.id,
            components=ScoreComponents(compatibility=score, behavior=50, temporal=50),
            weights=self.weights,
            final_score=score,
            confidence=1.0,
            reasons=("fixed",),
            calculated_at=now or datetime.now(timezone.utc),
        )

    def get_weights(self):
        return self.weights

    def update_weights(self, weights):
        self.weights = weights


@pytest.fixture
def service() -> RankingService:
    return RankingService()


def _fixed_service(scores: dict[str, float]) -> tuple[RankingService, list[Listing]]:
    listings = [Listing(id=listing_id) for listing_id in scores]
    return RankingService(FixedScoreEngine(scores)), listings


class TestRankProperties:
    def test_ranks_every_listing(self, service, listings, criteria):
        result = service.rank_properties(listings, criteria)

        assert len(result.ranked) == len(listings)
        assert result.total == len(listings)
        assert result.matched == len(listings)

    def test_scores_non_increasing(self, service, listings, criteria):
        scores = [item.final_score for item in service.rank_properties(listings, criteria).ranked]
        assert scores == sorted(scores, reverse=True)

    def test_sequential_ranks(self, service, listings, criteria):
        result = service.rank_properties(listings, criteria)
        assert [item.rank for item in result.ranked] == list(range(1, len(listings) + 1))

    def test_statistics(self, service, listings, criteria):
        result = service.rank_properties(listings, criteria)
        scores = [item.final_score for item in result.ranked]

        assert result.top_score == result.ranked[0].final_score
        assert result.average_score == pytest.approx(sum(scores) / len(scores), abs=0.01)
        assert result.top_score >= result.average_score

    def test_ties_keep_input_order(self):
        service, listings = _fixed_service({"a": 70, "b": 80, "c": 70, "d": 80})
        result = service.rank_properties(listings)
        assert [item.listing.id for item in result.ranked] == ["b", "d", "a", "c"]

    def test_limit(self, service, listings, criteria):
        result = service.rank_properties(listings, criteria, options=RankingOptions(limit=3))

        assert len(result.ranked) == 3
        assert result.total == len(listings)
        assert result.per_page == 3

    def test_offset_keeps_global_ranks(self):
        scores = {"a": 90, "b": 80, "c": 70, "d": 60, "e": 50}
        service, listings = _fixed_service(scores)
        result = service.rank_properties(listings, options={"limit": 2, "offset": 2})

        assert [item.listing.id for item in result.ranked] == ["c", "d"]
        assert [item.rank for item in result.ranked] == [3, 4]
        assert result.page == 2
        assert result.total == 5
        assert result.average_score == 65
        assert result.top_score == 70

    def test_min_score_then_pagination(self):
        scores = {"a": 90, "b": 40, "c": 75, "d": 65, "e": 20}
        service, listings = _fixed_service(scores)
        result = service.rank_properties(listings, options=RankingOptions(min_score=60, limit=2))

        assert [item.listing.id for item in result.ranked] == ["a", "c"]
        assert all(item.final_score >= 60 for item in result.ranked)
        assert result.matched == 3
        assert result.total == 5

    def test_behavior_map(self, service, listings, criteria):
        behavior_map = {"prop-1": UserBehavior(views=5, total_view_time=400)}
        result = service.rank_properties(listings, criteria, behavior_map=behavior_map)

        by_id = {item.listing.id: item for item in result.ranked}
        assert by_id["prop-1"].result.components.behavior == 60
        assert by_id["prop-2"].result.components.behavior == 50

    def test_temporal_map(self, service, listings, criteria):
        temporal_map = {"prop-9": TemporalFactors(days_on_market=1, is_new_listing=True)}
        plain = service.rank_properties(listings, criteria)
        boosted = service.rank_properties(listings, criteria, temporal_map=temporal_map)

        def temporal_of(result):
            return next(i for i in result.ranked if i.listing.id == "prop-9").result.components.temporal

        assert temporal_of(boosted) > temporal_of(plain)

    def test_empty_input(self, service, criteria):
        result = service.rank_properties([], criteria)

        assert result.ranked == []
        assert result.total == 0
        assert result.average_score == 0
        assert result.top_score == 0

    def test_single_listing(self, service, listing, criteria):
        result = service.rank_properties([listing], criteria)
        assert len(result.ranked) == 1
        assert result.ranked[0].rank == 1

    def test_missing_data(self, service, criteria):
        result = service.rank_properties([Listing(id="a"), Listing(id="b", price=250_000)], criteria)
        assert len(result.ranked) == 2


class TestTopAndThreshold:
    def test_top_n(self, service, listings, criteria):
        top = service.get_top_properties(listings, criteria, top_n=5)

        assert len(top) == 5
        assert [i.final_score for i in top] == sorted((i.final_score for i in top), reverse=True)

    @pytest.mark.parametrize("top_n", [0, -3])
    def test_non_positive_top_n_is_empty(self, service, listings, criteria, top_n):
        assert service.get_top_properties(listings, criteria, top_n=top_n) == []

    def test_zero_top_n_on_bare_listing(self, service):
        assert service.get_top_properties([Listing(id="a")], SearchCriteria(), top_n=0) == []

    def test_defaults_to_ten(self, service, listings, criteria):
        extra = listings + [Listing(id=f"extra-{i}") for i in range(5)]
        assert len(service.get_top_properties(extra, criteria)) == 10

    def test_threshold(self, service, listings, criteria):
        filtered = service.filter_by_score_threshold(listings, criteria, 60)
        assert all(item.final_score >= 60 for item in filtered)

    def test_threshold_can_be_empty(self, service, listings, criteria):
        assert service.filter_by_score_threshold(listings, criteria, 101) == []


class TestGroupByScoreRange:
    def test_boundaries(self):
        scores = {"a": 95, "b": 80, "c": 79.99, "d": 60, "e": 59.5, "f": 40, "g": 39.99, "h": 0}
        service, listings = _fixed_service(scores)
        groups = service.group_by_score_range(listings, SearchCriteria())

        assert [i.listing.id for i in groups.excellent] == ["a", "b"]
        assert [i.listing.id for i in groups.good] == ["c", "d"]
        assert [i.listing.id for i in groups.fair] == ["e", "f"]
        assert [i.listing.id for i in groups.poor] == ["g", "h"]

    def test_partition(self, service, listings, listing, poor_listing, criteria):
        everything = listings + [listing, poor_listing]
        groups = service.group_by_score_range(everything, criteria)

        assert groups.count() == len(everything)
        ids = [i.listing.id for g in (groups.excellent, groups.good, groups.fair, groups.poor) for i in g]
        assert sorted(ids) == sorted(l.id for l in everything)
        assert all(i.final_score >= 80 for i in groups.excellent)
        assert all(60 <= i.final_score < 80 for i in groups.good)
        assert all(40 <= i.final_score < 60 for i in groups.fair)
        assert all(i.final_score < 40 for i in groups.poor)


class TestCompareProperties:
    def test_clear_winner(self, service, listing, poor_listing, criteria):
        comparison = service.compare_properties(listing, poor_listing, criteria)

        assert comparison.winner == "a"
        assert comparison.score_difference == pytest.approx(
            comparison.first.final_score - comparison.second.final_score, abs=0.01
        )

    def test_second_wins(self, service, listing, poor_listing, criteria):
        assert service.compare_properties(poor_listing, listing, criteria).winner == "b"

    def test_tie_under_one_point(self):
        service, (a, b) = _fixed_service({"a": 70.0, "b": 70.9})
        comparison = service.compare_properties(a, b)

        assert comparison.winner == "tie"
        assert comparison.score_difference == pytest.approx(0.9)

    def test_one_point_apart_is_not_a_tie(self):
        service, (a, b) = _fixed_service({"a": 70.0, "b": 71.0})
        assert service.compare_properties(a, b).winner == "b"

    def test_per_listing_signals(self, service, listing, criteria):
        twin = listing.model_copy(update={"id": "twin"})
        comparison = service.compare_properties(
            listing,
            twin,
            criteria,
            behavior_first=UserBehavior(
                views=3, total_view_time=300
            ),
        )
        assert comparison.first.components.behavior == 60
        assert comparison.second.components.behavior == 50


class TestEngineSwap:
    def test_update_scoring_engine(self, service, listings, criteria):
        service.update_scoring_engine(
            ScoringEngine({"compatibility": 0.6, "behavior": 0.2, "temporal": 0.2})
        )
        result = service.rank_properties(listings, criteria)
        assert result.ranked[0].result.weights.compatibility == 0.6

    def test_get_scoring_engine(self, service):
        assert isinstance(service.get_scoring_engine(), ScoringEngine)

    def test_swap_does_not_touch_previous_results(self, service, listings, criteria):
        before = service.rank_properties(listings, criteria)
        service.update_scoring_engine(FixedScoreEngine({}))
        after = service.rank_properties(listings, criteria)

        assert before.ranked[0].result.weights.compatibility == 0.4
        assert after.top_score == 0

    def test_rerank_uses_current_engine(self):
        service, listings = _fixed_service({"a": 90, "b": 50})
        first = service.rank_properties(listings)

        service.update_scoring_engine(FixedScoreEngine({"a": 10, "b": 60}))
        second = service.rerank(first)

        assert [i.listing.id for i in second.ranked] == ["b", "a"]
