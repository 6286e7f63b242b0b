"""
Tests for the feed ranking engine.
"""
from datetime import datetime, timedelta, timezone

import pytest

from bento_service.errors import InvalidInputError
from bento_service.models import Post, RankReason
from bento_service.ranking import RankingEngine, rank

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_post(post_id, days_old=1.0, views=0, featured=False, bento_order=None, **extra):
    return Post(
        id=post_id,
        published_at=NOW - timedelta(days=days_old) if days_old is not None else None,
        view_count=views,
        is_featured=featured,
        bento_order=bento_order,
        **extra,
    )


def two_post_catalog():
    return [
        {"id": 1, "publishedAt": (NOW - timedelta(days=1)).isoformat(), "viewCount": 1000, "isFeatured": False},
        {"id": 2, "publishedAt": (NOW - timedelta(days=30)).isoformat(), "viewCount": 10, "isFeatured": True},
    ]


class TestRankingEngine:
    """Ordering, shifts and diagnostics."""

    def setup_method(self):
        self.engine = RankingEngine()
        self.posts = [
            make_post(1, days_old=0.5, views=50),
            make_post(2, days_old=3, views=5000),
            make_post(3, days_old=10, views=200),
            make_post(4, days_old=40, views=10),
            make_post(5, days_old=None, views=0),
            make_post("x", days_old=2, views=700),
        ]

    def test_output_is_permutation_of_input(self):
        result = self.engine.rank(self.posts, {1: 0.3, 4: 0.9}, now=NOW)

        assert sorted(map(str, result.ordered_ids())) == sorted(str(p.id) for p in self.posts)
        assert [item.final_rank for item in result.items] == list(range(len(self.posts)))
        assert result.meta.total_posts == len(self.posts)

    def test_no_scores_means_no_shift(self):
        result = self.engine.rank(self.posts, None, now=NOW)

        assert all(item.position_shift == 0 for item in result.items)
        assert all(item.rank_change == 0 for item in result.items)
        assert result.meta.has_personalization is False

    def test_empty_score_map_is_cold_path(self):
        cold = self.engine.rank(self.posts, {}, now=NOW)
        none = self.engine.rank(self.posts, None, now=NOW)

        assert cold.ordered_ids() == none.ordered_ids()
        assert cold.meta.max_rec_score == 0

    def test_all_zero_scores_behave_like_no_scores(self):
        result = self.engine.rank(self.posts, {1: 0, 2: 0.0}, now=NOW)

        assert result.meta.has_personalization is False
        assert all(item.normalized_rec_score == 0 for item in result.items)
        assert all(item.position_shift == 0 for item in result.items)

    def test_max_normalized_score_is_one(self):
        result = self.engine.rank(self.posts, {1: 2.0, 3: 8.0, 4: 4.0}, now=NOW)

        normalized = {item.post_id: item.normalized_rec_score for item in result.items}
        assert max(normalized.values()) == pytest.approx(1.0)
        assert normalized[3] == pytest.approx(1.0)
        assert normalized[4] == pytest.approx(0.5)
        assert normalized[2] == 0
        assert result.meta.max_rec_score == pytest.approx(8.0)

    @pytest.mark.parametrize("magnitude", [1e-9, 1.0, 1e6, 1e300])
    def test_shift_is_bounded_for_any_magnitude(self, magnitude):
        result = self.engine.rank(self.posts, {4: magnitude, 5: magnitude / 2}, now=NOW)

        for item in result.items:
            assert -self.engine.max_position_shift <= item.position_shift <= 0
            assert abs(item.rank_change) <= self.engine.max_position_shift + 1

    def test_personalized_post_moves_at_most_max_shift(self):
        posts = [make_post(i, days_old=i, views=100) for i in range(20)]
        baseline = self.engine.rank(posts, None, now=NOW)
        last = baseline.ordered_ids()[-1]

        result = self.engine.rank(posts, {last: 1.0}, now=NOW)
        item = next(i for i in result.items if i.post_id == last)

        assert item.base_rank == 19
        assert item.position_shift == pytest.approx(-5.0)
        # Lands on post 14's key; equal keys break on id, so 14 stays ahead.
        assert item.final_rank == 15
        assert item.rank_change == -4
        assert item.reason == RankReason.HIGH_PERSONALIZATION

    def test_ranking_is_idempotent(self):
        scores = {1: 0.2, "x": 0.7}
        first = self.engine.rank(self.posts, scores, now=NOW)
        second = self.engine.rank(self.posts, scores, now=NOW)

        assert [i.model_dump() for i in first.items] == [i.model_dump() for i in second.items]

    def test_empty_catalog(self):
        result = self.engine.rank([], {1: 1.0}, now=NOW)

        assert result.items == []
        assert result.meta.total_posts == 0
        assert result.meta.max_position_shift == 5.0

    def test_unknown_score_ids_are_ignored(self):
        result = self.engine.rank(self.posts, {999: 100.0, 1: 1.0}, now=NOW)

        item = next(i for i in result.items if i.post_id == 1)
        assert item.normalized_rec_score == pytest.approx(1.0)
        assert result.meta.max_rec_score == pytest.approx(1.0)

    def test_string_keyed_scores_match_integer_ids(self):
        result = self.engine.rank(self.posts, {"3": 0.5}, now=NOW)

        item = next(i for i in result.items if i.post_id == 3)
        assert item.raw_rec_score == pytest.approx(0.5)

    def test_negative_scores_are_treated_as_absent(self):
        result = self.engine.rank(self.posts, {1: -4.0, 2: 1.0}, now=NOW)

        item = next(i for i in result.items if i.post_id == 1)
        assert item.raw_rec_score == 0
        assert item.position_shift == 0

    def test_draft_has_no_recency(self):
        draft = make_post(5, days_old=None)
        assert self.engine.recency(draft, NOW) == 0.0

    def test_future_publish_date_counts_as_fresh(self):
        future = make_post(9, days_old=-2)
        assert self.engine.recency(future, NOW) == pytest.approx(1.0)

    def test_recency_half_life(self):
        week_old = make_post(9, days_old=7)
        assert self.engine.recency(week_old, NOW) == pytest.approx(0.5)

    def test_naive_datetimes_are_utc(self):
        naive = Post(id=1, published_at=datetime(2024, 5, 31, 12, 0))
        assert self.engine.recency(naive, NOW) == pytest.approx(0.5 ** (1 / 7))

    def test_popularity_with_no_views(self):
        assert RankingEngine.popularity(0, 0) == 0.0
        assert RankingEngine.popularity(100, 100) == pytest.approx(1.0)

    def test_ties_break_on_id(self):
        posts = [make_post(3, days_old=1), make_post(1, days_old=1), make_post(2, days_old=1)]
        result = self.engine.rank(posts, None, now=NOW)

        assert result.ordered_ids() == [1, 2, 3]

    def test_integer_ids_sort_before_string_ids_on_ties(self):
        posts = [make_post("a", days_old=1), make_post(7, days_old=1)]
        result = self.engine.rank(posts, None, now=NOW)

        assert result.ordered_ids() == [7, "a"]

    def test_invalid_engine_settings(self):
        with pytest.raises(ValueError):
            RankingEngine(half_life_days=0)
        with pytest.raises(ValueError):
            RankingEngine(max_position_shift=-1)


class TestFeaturedAndPersonalization:
    """The two-post catalog: featured editorial pick against a popular fresh post."""

    def test_featured_post_ranks_first_without_scores(self):
        result = RankingEngine().rank(two_post_catalog(), None, now=NOW)

        assert result.ordered_ids() == [2, 1]
        assert result.items[0].reason == RankReason.FEATURED
        assert all(item.position_shift == 0 for item in result.items)

    def test_personalization_cannot_jump_featured_post(self):
        result = RankingEngine().rank(two_post_catalog(), {1: 0.9, 2: 0.1}, now=NOW)
        by_id = {item.post_id: item for item in result.items}

        assert result.meta.max_rec_score == pytest.approx(0.9)
        assert by_id[1].normalized_rec_score == pytest.approx(1.0)
        assert by_id[2].normalized_rec_score == pytest.approx(0.111, abs=1e-3)
        assert result.ordered_ids() == [2, 1]
        assert by_id[1].rank_change == 0
        assert by_id[1].position_shift == pytest.approx(-5.0)

    def test_featured_posts_stay_above_unfeatured(self):
        posts = [make_post(i, days_old=0, views=10_000) for i in range(10)]
        posts.append(make_post(99, days_old=365, views=0, featured=True))

        result = RankingEngine().rank(posts, {i: 1.0 for i in range(10)}, now=NOW)

        assert result.ordered_ids()[0] == 99
        assert result.meta.featured_count == 1


class TestManualPins:
    """bento_order places posts at exact slots."""

    def test_reorder_puts_pinned_posts_at_front(self):
        posts = [
            make_post("p1", days_old=1, views=900, bento_order=1),
            make_post("p2", days_old=1, views=800, bento_order=2),
            make_post("p3", days_old=90, views=1, bento_order=0),
            make_post("p4", days_old=0, views=10_000),
            make_post("p5", days_old=0, views=10_000, featured=True),
        ]
        result = RankingEngine().rank(posts, {"p4": 5.0}, now=NOW)

        assert result.ordered_ids()[:3] == ["p3", "p1", "p2"]
        assert result.meta.pinned_count == 3
        assert all(item.is_pinned for item in result.items[:3])

    def test_pin_beyond_catalog_length_goes_last(self):
        posts = [make_post(1), make_post(2), make_post(3, bento_order=99)]
        result = RankingEngine().rank(posts, None, now=NOW)

        assert result.ordered_ids()[-1] == 3

    def test_colliding_pins_take_next_free_slot(self):
        posts = [make_post(1, bento_order=0), make_post(2, bento_order=0), make_post(3)]
        result = RankingEngine().rank(posts, None, now=NOW)

        assert result.ordered_ids() == [1, 2, 3]

    def test_pins_apply_to_base_rank_too(self):
        posts = [make_post(1, days_old=0, views=1000), make_post(2, days_old=50, bento_order=0)]
        result = RankingEngine().rank(posts, None, now=NOW)

        assert result.ordered_ids() == [2, 1]
        assert all(item.rank_change == 0 for item in result.items)


class TestInputValidation:
    """Malformed catalogs are rejected before ranking starts."""

    def test_negative_view_count(self):
        with pytest.raises(InvalidInputError) as exc_info:
            RankingEngine().rank([{"id": 1, "viewCount": -5}])
        assert any("record 0" in detail for detail in exc_info.value.details)

    def test_missing_id(self):
        with pytest.raises(InvalidInputError):
            RankingEngine().rank([{"viewCount": 5}])

    def test_non_object_record(self):
        with pytest.raises(InvalidInputError) as exc_info:
            RankingEngine().rank(["not a post"])
        assert "expected an object" in exc_info.value.details[0]

    def test_duplicate_ids(self):
        with pytest.raises(InvalidInputError) as exc_info:
            RankingEngine().rank([{"id": 1}, {"id": 1}])
        assert "duplicate" in str(exc_info.value)

    def test_invalid_input_is_a_value_error(self):
        with pytest.raises(ValueError):
            rank([{"id": 1, "declaredSize": "huge"}])


def test_module_level_rank_returns_items():
    items = rank(two_post_catalog(), now=NOW)

    assert [item.post_id for item in items] == [2, 1]
