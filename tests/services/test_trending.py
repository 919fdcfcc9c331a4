"""Trending ranking: scoring, ordering, time windows and visibility."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from threadline.core.errors import ValidationError
from threadline.models import Like
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PRIVATE
from threadline.services.social import SocialService
from threadline.services.trending import TrendingService, time_threshold, trending_score

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture()
def trending(db_session) -> TrendingService:
    return TrendingService(db_session)


@pytest.fixture()
def add_likes(db_session, make_user):
    def _add(post, n: int) -> None:
        for _ in range(n):
            db_session.add(Like(user_id=make_user().id, post_id=post.id))
        db_session.flush()

    return _add


def test_trending_score_formula() -> None:
    created = NOW - timedelta(hours=3)
    assert trending_score(4, 2, created, NOW) == pytest.approx((4 * 2 + 2 * 3) / 4)
    assert trending_score(0, 0, created, NOW) == 0


def test_trending_score_decays_with_age() -> None:
    fresh = trending_score(10, 0, NOW - timedelta(hours=1), NOW)
    stale = trending_score(10, 0, NOW - timedelta(hours=10), NOW)
    assert fresh > stale


def test_trending_score_never_divides_by_less_than_one() -> None:
    # A post from the future counts as brand new.
    assert trending_score(1, 0, NOW + timedelta(hours=5), NOW) == 2


def test_time_threshold_windows() -> None:
    assert time_threshold("day", NOW) == NOW - timedelta(days=1)
    assert time_threshold("week", NOW) == NOW - timedelta(days=7)
    assert time_threshold("month", NOW) == NOW - timedelta(days=30)
    assert time_threshold("all", NOW) is None
    with pytest.raises(ValidationError):
        time_threshold("year", NOW)


def test_trending_orders_by_decayed_engagement(
    trending, test_user, make_post, make_comment, add_likes
) -> None:
    old_popular = make_post(test_user, "old", created_at=NOW - timedelta(hours=47))
    add_likes(old_popular, 10)  # 20 / 48
    fresh = make_post(test_user, "fresh", created_at=NOW - timedelta(hours=1))
    add_likes(fresh, 2)  # 4 / 2
    commented = make_post(test_user, "talked about", created_at=NOW - timedelta(hours=3))
    make_comment(commented, test_user)
    make_comment(commented, test_user)  # 6 / 4

    page = trending.get_trending(time_range="week", now=NOW)

    assert [p.id for p in page.data] == [fresh.id, commented.id, old_popular.id]
    assert page.data[1].comment_count == 2


def test_trending_breaks_ties_by_recency_then_id(trending, test_user, make_post) -> None:
    created = NOW - timedelta(hours=2)
    first = make_post(test_user, "a", created_at=created)
    second = make_post(test_user, "b", created_at=created)
    newer = make_post(test_user, "c", created_at=NOW - timedelta(hours=1))

    page = trending.get_trending(time_range="day", now=NOW)

    assert [p.id for p in page.data] == [newer.id, second.id, first.id]


def test_trending_respects_time_range(trending, test_user, make_post) -> None:
    recent = make_post(test_user, "recent", created_at=NOW - timedelta(hours=5))
    last_week = make_post(test_user, "last week", created_at=NOW - timedelta(days=5))
    ancient = make_post(test_user, "ancient", created_at=NOW - timedelta(days=90))

    def ids(time_range: str) -> set[int]:
        return {p.id for p in trending.get_trending(time_range=time_range, now=NOW).data}

    assert ids("day") == {recent.id}
    assert ids("week") == {recent.id, last_week.id}
    assert ids("month") == {recent.id, last_week.id}
    assert ids("all") == {recent.id, last_week.id, ancient.id}


def test_trending_applies_viewer_visibility(
    db_session, fake_redis, trending, test_user, other_user, third_user, make_post, follow
) -> None:
    created = NOW - timedelta(hours=1)
    public = make_post(other_user, "public", created_at=created)
    friends_followed = make_post(
        other_user, "friends", visibility=VISIBILITY_FRIENDS, created_at=created
    )
    make_post(third_user, "friends of stranger", visibility=VISIBILITY_FRIENDS, created_at=created)
    make_post(other_user, "private", visibility=VISIBILITY_PRIVATE, created_at=created)
    follow(test_user, other_user)

    anonymous = {p.id for p in trending.get_trending(now=NOW).data}
    viewer = {p.id for p in trending.get_trending(viewer_id=test_user.id, now=NOW).data}

    assert anonymous == {public.id}
    assert viewer == {public.id, friends_followed.id}

    SocialService(db_session).block_user(third_user.id, test_user.id)
    SocialService(db_session).block_user(other_user.id, test_user.id)
    # Ranked pages are not evicted by relationship writes; they age out by TTL.
    fake_redis.flushall()
    assert trending.get_trending(viewer_id=test_user.id, now=NOW).data == []


def test_trending_pages_through_the_ranking(trending, test_user, make_post, add_likes) -> None:
    posts = [
        make_post(test_user, f"p{i}", created_at=NOW - timedelta(hours=1)) for i in range(5)
    ]
    for i, post in enumerate(posts):
        add_likes(post, i)

    first = trending.get_trending(page=1, limit=2, now=NOW)
    third = trending.get_trending(page=3, limit=2, now=NOW)

    assert [p.id for p in first.data] == [posts[4].id, posts[3].id]
    assert [p.id for p in third.data] == [posts[0].id]
    assert first.total == 5
    assert third.has_next_page is False


def test_trending_rejects_unknown_range(trending) -> None:
    with pytest.raises(ValidationError):
        trending.get_trending(time_range="forever", now=NOW)
