"""Post lifecycle and per-viewer post reads."""

from __future__ import annotations

import pytest

from threadline.core.errors import ForbiddenError, NotFoundError, ValidationError
from threadline.models import Block
from threadline.models.post import VISIBILITY_FRIENDS, VISIBILITY_PRIVATE
from threadline.services import cache as keys
from threadline.services.content import ContentService
from threadline.services.social import SocialService


@pytest.fixture()
def content(db_session) -> ContentService:
    return ContentService(db_session)


def test_create_post_trims_content_and_defaults_to_public(content, test_user) -> None:
    post = content.create_post(test_user.id, "  hello world  ", ["https://cdn/x.png"])

    assert post.content == "hello world"
    assert post.visibility == "public"
    assert post.media_urls == ["https://cdn/x.png"]
    assert post.author.username == test_user.username
    assert (post.like_count, post.comment_count, post.is_liked) == (0, 0, False)


@pytest.mark.parametrize(
    ("text", "media", "visibility"),
    [
        ("", None, "public"),
        ("   ", None, "public"),
        ("x" * 5001, None, "public"),
        ("ok", [f"https://cdn/{i}" for i in range(11)], "public"),
        ("ok", None, "everyone"),
    ],
)
def test_create_post_validation(content, test_user, text, media, visibility) -> None:
    with pytest.raises(ValidationError):
        content.create_post(test_user.id, text, media, visibility)


def test_friends_post_appears_once_viewer_follows(
    db_session, content, test_user, other_user, make_post
) -> None:
    post = make_post(other_user, "friends only", visibility=VISIBILITY_FRIENDS)

    with pytest.raises(NotFoundError):
        content.get_post_by_id(post.id, test_user.id)

    SocialService(db_session).follow_user(test_user.id, other_user.id)

    assert content.get_post_by_id(post.id, test_user.id).id == post.id


def test_unfollow_hides_a_cached_friends_post(
    db_session, content, test_user, other_user, make_post, follow
) -> None:
    post = make_post(other_user, "friends only", visibility=VISIBILITY_FRIENDS)
    follow(test_user, other_user)
    assert content.get_post_by_id(post.id, test_user.id).id == post.id

    SocialService(db_session).unfollow_user(test_user.id, other_user.id)

    with pytest.raises(NotFoundError):
        content.get_post_by_id(post.id, test_user.id)


def test_private_post_is_author_only(content, test_user, other_user, make_post) -> None:
    post = make_post(test_user, "diary", visibility=VISIBILITY_PRIVATE)

    assert content.get_post_by_id(post.id, test_user.id).id == post.id
    with pytest.raises(NotFoundError):
        content.get_post_by_id(post.id, other_user.id)
    with pytest.raises(NotFoundError):
        content.get_post_by_id(post.id)


def test_blocked_viewer_gets_the_same_not_found(
    db_session, content, test_user, other_user, test_post
) -> None:
    db_session.add(Block(blocker_id=test_user.id, blocked_id=other_user.id))
    db_session.flush()

    with pytest.raises(NotFoundError) as blocked:
        content.get_post_by_id(test_post.id, other_user.id)
    with pytest.raises(NotFoundError) as missing:
        content.get_post_by_id(999_999, other_user.id)

    assert blocked.value.message == missing.value.message


def test_update_is_visible_on_the_next_read_even_when_cached(
    content, fake_redis, test_user, test_post
) -> None:
    assert content.get_post_by_id(test_post.id).content == "Test post content"
    assert fake_redis.exists(keys.post_key(test_post.id, None))

    content.update_post(test_post.id, test_user.id, content="edited")

    assert content.get_post_by_id(test_post.id).content == "edited"


def test_only_the_author_may_update_or_delete(
    content, test_user, other_user, test_post
) -> None:
    with pytest.raises(ForbiddenError):
        content.update_post(test_post.id, other_user.id, content="mine now")
    with pytest.raises(ForbiddenError):
        content.delete_post(test_post.id, other_user.id)


def test_update_validates_fields(content, test_user, test_post) -> None:
    with pytest.raises(ValidationError):
        content.update_post(test_post.id, test_user.id, content="")
    with pytest.raises(ValidationError):
        content.update_post(test_post.id, test_user.id, visibility="secret")

    updated = content.update_post(test_post.id, test_user.id, visibility=VISIBILITY_FRIENDS)
    assert updated.visibility == VISIBILITY_FRIENDS
    assert updated.content == "Test post content"


def test_delete_is_soft_and_hides_the_post(
    db_session, content, test_user, test_post
) -> None:
    content.get_post_by_id(test_post.id)

    content.delete_post(test_post.id, test_user.id)

    db_session.refresh(test_post)
    assert test_post.is_deleted is True
    assert test_post.deleted_at is not None
    with pytest.raises(NotFoundError):
        content.get_post_by_id(test_post.id)
    with pytest.raises(NotFoundError):
        content.delete_post(test_post.id, test_user.id)


def test_user_posts_respect_visibility(
    content, test_user, other_user, make_post, follow
) -> None:
    public = make_post(other_user, "public")
    friends = make_post(other_user, "friends", visibility=VISIBILITY_FRIENDS)
    private = make_post(other_user, "private", visibility=VISIBILITY_PRIVATE)

    def ids(viewer_id) -> set[int]:
        return {p.id for p in content.get_user_posts(other_user.id, viewer_id).data}

    assert ids(None) == {public.id}
    assert ids(test_user.id) == {public.id}
    follow(test_user, other_user)
    assert ids(test_user.id) == {public.id, friends.id}
    assert ids(other_user.id) == {public.id, friends.id, private.id}


def test_user_posts_of_blocked_or_missing_author(
    db_session, content, test_user, other_user
) -> None:
    db_session.add(Block(blocker_id=other_user.id, blocked_id=test_user.id))
    db_session.flush()

    with pytest.raises(NotFoundError):
        content.get_user_posts(other_user.id, test_user.id)
    with pytest.raises(NotFoundError):
        content.get_user_posts(999_999)
