"""Bulk lookups of posts, users and comments."""

from __future__ import annotations

import pytest

from threadline.core.errors import ValidationError
from threadline.models import Block
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PRIVATE
from threadline.repositories.post_repo import PostRepository
from threadline.services import cache as keys
from threadline.services.batch import MAX_BATCH_SIZE, BatchService
from threadline.services.users import UserService


@pytest.fixture()
def batch(db_session) -> BatchService:
    return BatchService(db_session)


def test_posts_respect_visibility(
    batch, test_user, other_user, third_user, make_post, follow
) -> None:
    public = make_post(other_user, "public")
    friends = make_post(other_user, "friends", visibility=VISIBILITY_FRIENDS)
    private = make_post(other_user, "private", visibility=VISIBILITY_PRIVATE)
    follow(test_user, other_user)

    found = batch.get_posts([public.id, friends.id, private.id, 999_999], test_user.id)
    assert list(found) == [public.id, friends.id]

    strangers = batch.get_posts([public.id, friends.id, private.id], third_user.id)
    assert list(strangers) == [public.id]


def test_posts_hidden_across_a_block(
    db_session, batch, test_user, other_user, test_post
) -> None:
    db_session.add(Block(blocker_id=test_user.id, blocked_id=other_user.id))
    db_session.flush()

    assert batch.get_posts([test_post.id], other_user.id) == {}


def test_posts_are_cached_per_viewer_and_misses_load_in_one_query(
    monkeypatch, batch, fake_redis, test_user, other_user, make_post
) -> None:
    first = make_post(test_user, "first")
    second = make_post(test_user, "second")
    batch.get_posts([first.id], other_user.id)
    assert fake_redis.exists(keys.post_key(first.id, other_user.id))

    calls: list[list[int]] = []
    original = PostRepository.find_posts_by_ids

    def spy(self, post_ids, **kwargs):
        calls.append(list(post_ids))
        return original(self, post_ids, **kwargs)

    monkeypatch.setattr(PostRepository, "find_posts_by_ids", spy)

    found = batch.get_posts([first.id, second.id], other_user.id)

    assert list(found) == [first.id, second.id]
    assert calls == [[second.id]]
    assert fake_redis.exists(keys.post_key(second.id, other_user.id))
    assert not fake_redis.exists(keys.post_key(second.id, None))


def test_batch_size_is_bounded(batch) -> None:
    with pytest.raises(ValidationError):
        batch.get_posts(list(range(1, MAX_BATCH_SIZE + 2)))
    with pytest.raises(ValidationError):
        batch.get_users(list(range(1, MAX_BATCH_SIZE + 2)))
    with pytest.raises(ValidationError):
        batch.get_comments(list(range(1, MAX_BATCH_SIZE + 2)))
    assert batch.get_posts([]) == {}


def test_users_skip_blocked_and_closed_accounts(
    db_session, batch, test_user, other_user, third_user, make_user
) -> None:
    ghost = make_user("ghost")
    ghost.is_active = False
    db_session.add(Block(blocker_id=third_user.id, blocked_id=test_user.id))
    db_session.flush()

    found = batch.get_users([other_user.id, third_user.id, ghost.id, 999_999], test_user.id)

    assert list(found) == [other_user.id]
    assert found[other_user.id].username == "bob"


def test_users_reuse_cached_profiles(db_session, batch, test_user, other_user) -> None:
    UserService(db_session).get_profile(other_user.id)
    other_user.bio = "changed behind the cache"
    db_session.flush()

    found = batch.get_users([other_user.id], test_user.id)

    assert found[other_user.id].bio is None


def test_comments_follow_their_post(
    db_session, batch, test_user, other_user, third_user, test_post, make_post, make_comment
) -> None:
    visible = make_comment(test_post, other_user, "on a public post")
    hidden_post = make_post(test_user, "friends", visibility=VISIBILITY_FRIENDS)
    on_hidden = make_comment(hidden_post, test_user, "on a friends post")
    by_blocked = make_comment(test_post, third_user, "blocked author")
    db_session.add(Block(blocker_id=other_user.id, blocked_id=third_user.id))
    db_session.flush()

    found = batch.get_comments([visible.id, on_hidden.id, by_blocked.id], other_user.id)

    assert list(found) == [visible.id]
    assert found[visible.id].author.username == "bob"
