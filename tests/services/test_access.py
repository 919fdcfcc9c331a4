"""Truth table for the post visibility rules."""

from __future__ import annotations

import itertools

import pytest

from threadline.models import Post
from threadline.models.post import (
    VISIBILITIES,
    VISIBILITY_FRIENDS,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)
from threadline.services.access import can_view, visible_visibilities

AUTHOR_ID = 1
VIEWER_ID = 2


def _post(visibility: str, *, deleted: bool = False) -> Post:
    return Post(id=10, author_id=AUTHOR_ID, content="x", visibility=visibility, is_deleted=deleted)


@pytest.mark.parametrize(
    ("viewer_id", "visibility", "blocked", "follows", "expected"),
    [
        (None, VISIBILITY_PUBLIC, False, False, True),
        (None, VISIBILITY_FRIENDS, False, False, False),
        (None, VISIBILITY_PRIVATE, False, False, False),
        (VIEWER_ID, VISIBILITY_PUBLIC, False, False, True),
        (VIEWER_ID, VISIBILITY_FRIENDS, False, False, False),
        (VIEWER_ID, VISIBILITY_FRIENDS, False, True, True),
        (VIEWER_ID, VISIBILITY_PRIVATE, False, True, False),
        (VIEWER_ID, VISIBILITY_PUBLIC, True, False, False),
        (VIEWER_ID, VISIBILITY_FRIENDS, True, True, False),
        (AUTHOR_ID, VISIBILITY_PRIVATE, False, False, True),
        (AUTHOR_ID, VISIBILITY_FRIENDS, False, False, True),
    ],
)
def test_can_view_truth_table(viewer_id, visibility, blocked, follows, expected) -> None:
    assert can_view(viewer_id, _post(visibility), blocked, follows) is expected


@pytest.mark.parametrize("visibility", VISIBILITIES)
def test_deleted_post_is_never_visible(visibility: str) -> None:
    for viewer_id in (None, VIEWER_ID, AUTHOR_ID):
        assert can_view(viewer_id, _post(visibility, deleted=True), False, True) is False


def test_block_hides_everything_from_everyone_but_deleted_check_first() -> None:
    for viewer_id, visibility in itertools.product((None, VIEWER_ID), VISIBILITIES):
        assert can_view(viewer_id, _post(visibility), True, True) is False


def test_following_never_reduces_visibility() -> None:
    for viewer_id, visibility, blocked in itertools.product(
        (None, VIEWER_ID, AUTHOR_ID), VISIBILITIES, (False, True)
    ):
        post = _post(visibility)
        if can_view(viewer_id, post, blocked, False):
            assert can_view(viewer_id, post, blocked, True)


def test_blocking_never_increases_visibility() -> None:
    for viewer_id, visibility, follows in itertools.product(
        (None, VIEWER_ID, AUTHOR_ID), VISIBILITIES, (False, True)
    ):
        post = _post(visibility)
        if can_view(viewer_id, post, True, follows):
            assert can_view(viewer_id, post, False, follows)


def test_visible_visibilities_matches_can_view() -> None:
    for viewer_id, follows in itertools.product((None, VIEWER_ID, AUTHOR_ID), (False, True)):
        allowed = set(visible_visibilities(viewer_id, AUTHOR_ID, follows))
        expected = {v for v in VISIBILITIES if can_view(viewer_id, _post(v), False, follows)}
        assert allowed == expected
