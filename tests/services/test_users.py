"""Profiles and account closure."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from threadline.core.errors import NotFoundError
from threadline.models import Block, Comment, Follow, Like, Post
from threadline.schemas.user import UserUpdate
from threadline.services import cache as keys
from threadline.services.social import SocialService
from threadline.services.users import UserService


@pytest.fixture()
def users(db_session) -> UserService:
    return UserService(db_session)


def test_profile_carries_counts(
    db_session, users, test_user, other_user, third_user, make_post
) -> None:
    social = SocialService(db_session)
    social.follow_user(other_user.id, test_user.id)
    social.follow_user(third_user.id, test_user.id)
    social.follow_user(test_user.id, other_user.id)
    make_post(test_user, "one")
    make_post(test_user, "two")

    profile = users.get_profile(test_user.id, viewer_id=other_user.id)

    assert profile.username == "alice"
    assert (profile.followers_count, profile.following_count, profile.posts_count) == (2, 1, 2)


def test_profile_hidden_across_a_block(db_session, users, test_user, other_user) -> None:
    users.get_profile(test_user.id)
    db_session.add(Block(blocker_id=test_user.id, blocked_id=other_user.id))
    db_session.flush()

    # The block check runs before the cache lookup.
    with pytest.raises(NotFoundError):
        users.get_profile(test_user.id, viewer_id=other_user.id)
    assert users.get_profile(test_user.id).id == test_user.id


def test_own_profile_includes_private_fields(users, test_user) -> None:
    own = users.get_own_profile(test_user.id)

    assert own.email == test_user.email
    assert own.is_active is True


def test_update_profile_evicts_both_entries(users, fake_redis, test_user) -> None:
    users.get_profile(test_user.id)
    users.get_own_profile(test_user.id)

    updated = users.update_profile(test_user.id, UserUpdate(bio="New bio"))

    assert updated.bio == "New bio"
    assert not fake_redis.exists(keys.profile_key(test_user.id))
    assert users.get_profile(test_user.id).bio == "New bio"
    assert users.get_own_profile(test_user.id).bio == "New bio"


def test_update_profile_leaves_unset_fields(users, test_user) -> None:
    updated = users.update_profile(test_user.id, UserUpdate(last_name="Liddell"))

    assert updated.first_name == "Alice"
    assert updated.last_name == "Liddell"


def test_delete_account_runs_the_full_cleanup(
    db_session, users, fake_redis, test_user, other_user, third_user, make_post, make_comment
) -> None:
    social = SocialService(db_session)
    mine = make_post(test_user, "mine")
    theirs = make_post(other_user, "theirs")
    make_comment(theirs, test_user, "my comment")
    social.like_post(test_user.id, theirs.id)
    social.follow_user(test_user.id, other_user.id)
    social.follow_user(third_user.id, test_user.id)
    social.block_user(test_user.id, third_user.id)
    social.get_followers(other_user.id)
    users.get_profile(test_user.id)

    users.delete_account(test_user.id)

    def count(stmt) -> int:
        return db_session.execute(stmt).scalar_one()

    uid = test_user.id
    assert count(
        select(func.count()).select_from(Follow).where(
            (Follow.follower_id == uid) | (Follow.following_id == uid)
        )
    ) == 0
    assert count(
        select(func.count()).select_from(Block).where(
            (Block.blocker_id == uid) | (Block.blocked_id == uid)
        )
    ) == 0
    assert count(select(func.count()).select_from(Like).where(Like.user_id == uid)) == 0
    assert count(
        select(func.count()).select_from(Comment).where(
            Comment.author_id == uid, Comment.is_deleted.is_(False)
        )
    ) == 0
    # Owned content is soft-deleted, not removed.
    assert db_session.get(Post, mine.id) is not None
    assert count(
        select(func.count()).select_from(Post).where(
            Post.author_id == uid, Post.is_deleted.is_(False)
        )
    ) == 0

    assert not fake_redis.exists(keys.profile_key(uid))
    assert not fake_redis.exists(keys.followers_key(other_user.id, 1, 20))
    with pytest.raises(NotFoundError):
        users.get_profile(uid)
    assert social.get_followers(other_user.id).total == 0


def test_delete_missing_account(users) -> None:
    with pytest.raises(NotFoundError):
        users.delete_account(999_999)
