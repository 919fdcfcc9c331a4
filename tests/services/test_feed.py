"""Home feed assembly scenarios."""

from __future__ import annotations

from datetime import timedelta

import pytest

from threadline.core.errors import ValidationError
from threadline.db.time import utcnow
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PRIVATE
from threadline.services import cache as keys
from threadline.services.content import ContentService
from threadline.services.feed import FeedService
from threadline.services.social import SocialService


@pytest.fixture()
def feed(db_session) -> FeedService:
    return FeedService(db_session)


def test_feed_contains_own_and_followed_posts_newest_first(
    feed, test_user, other_user, third_user, make_post, follow
) -> None:
    now = utcnow()
    follow(test_user, other_user)
    own = make_post(test_user, "mine", created_at=now - timedelta(hours=3))
    followed = make_post(other_user, "followed", created_at=now - timedelta(hours=1))
    make_post(third_user, "stranger", created_at=now)

    page = feed.get_feed(test_user.id)

    assert [p.id for p in page.data] == [followed.id, own.id]
    assert page.total == 2
    assert page.has_next_page is False


def test_feed_includes_friends_posts_and_skips_private_posts(
    feed, test_user, other_user, make_post, follow
) -> None:
    follow(test_user, other_user)
    friends = make_post(other_user, "for friends", visibility=VISIBILITY_FRIENDS)
    make_post(other_user, "just me", visibility=VISIBILITY_PRIVATE)
    make_post(test_user, "my diary", visibility=VISIBILITY_PRIVATE)

    page = feed.get_feed(test_user.id)

    assert [p.id for p in page.data] == [friends.id]


@pytest.mark.parametrize("viewer_blocks", [True, False])
def test_block_in_either_direction_removes_followed_author(
    db_session, feed, test_user, other_user, make_post, follow, viewer_blocks
) -> None:
    follow(test_user, other_user)
    make_post(other_user, "hidden soon")
    social = SocialService(db_session)
    if viewer_blocks:
        social.block_user(test_user.id, other_user.id)
    else:
        social.block_user(other_user.id, test_user.id)

    page = feed.get_feed(test_user.id)

    assert page.data == []
    # The follow edge survives the block.
    assert social.is_following(test_user.id, other_user.id)


def test_feed_marks_posts_liked_by_viewer(
    db_session, feed, test_user, other_user, make_post, follow
) -> None:
    follow(test_user, other_user)
    liked = make_post(other_user, "like me")
    make_post(other_user, "ignore me")
    SocialService(db_session).like_post(test_user.id, liked.id)

    page = feed.get_feed(test_user.id)

    flags = {p.id: (p.is_liked, p.like_count) for p in page.data}
    assert flags[liked.id] == (True, 1)
    assert [v for k, v in flags.items() if k != liked.id] == [(False, 0)]


def test_feed_pagination_metadata(feed, test_user, make_post) -> None:
    now = utcnow()
    for i in range(5):
        make_post(test_user, f"post {i}", created_at=now - timedelta(minutes=i))

    second = feed.get_feed(test_user.id, page=2, limit=2)

    assert [p.content for p in second.data] == ["post 2", "post 3"]
    assert second.total == 5
    assert second.total_pages == 3
    assert second.has_next_page is True
    assert second.has_previous_page is True


def test_feed_is_cached_until_a_write_invalidates_it(
    db_session, feed, fake_redis, test_user, other_user, make_post
) -> None:
    make_post(test_user, "first")
    assert feed.get_feed(test_user.id).total == 1
    assert fake_redis.exists(keys.feed_key(test_user.id, 1, 10))

    # A row written behind the service's back is not seen until invalidation.
    make_post(test_user, "sneaky")
    assert feed.get_feed(test_user.id).total == 1

    ContentService(db_session).create_post(test_user.id, "through the service")
    assert feed.get_feed(test_user.id).total == 3

    SocialService(db_session).follow_user(test_user.id, other_user.id)
    assert not fake_redis.exists(keys.feed_key(test_user.id, 1, 10))


@pytest.mark.parametrize(("page", "limit"), [(0, 10), (1, 0), (1, 101)])
def test_feed_rejects_bad_pagination(feed, test_user, page, limit) -> None:
    with pytest.raises(ValidationError):
        feed.get_feed(test_user.id, page=page, limit=limit)
