"""Decides whether a viewer may see a post.

Pure functions only: callers supply the block and follow facts, usually
batch-fetched for a whole page, so no per-post relationship query is needed.
"""

from __future__ import annotations

from threadline.models import Post
from threadline.models.post import (
    VISIBILITIES,
    VISIBILITY_FRIENDS,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)


def can_view(
    viewer_id: int | None,
    post: Post,
    is_blocked_pair: bool,
    viewer_follows_author: bool,
) -> bool:
    """Return True if ``viewer_id`` may see ``post``.

    Checks run cheapest first and short-circuit:

    1. deleted posts are never visible;
    2. a block in either direction hides everything;
    3. public posts are visible to everyone else;
    4. authors always see their own posts;
    5. anonymous viewers see nothing further;
    6. private posts are author-only;
    7. friends posts need the viewer to follow the author.
    """
    if post.is_deleted:
        return False
    if is_blocked_pair:
        return False
    if post.visibility == VISIBILITY_PUBLIC:
        return True
    if viewer_id is not None and viewer_id == post.author_id:
        return True
    if viewer_id is None:
        return False
    if post.visibility == VISIBILITY_PRIVATE:
        return False
    if post.visibility == VISIBILITY_FRIENDS:
        return viewer_follows_author
    return False


def visible_visibilities(
    viewer_id: int | None,
    author_id: int,
    viewer_follows_author: bool,
) -> tuple[str, ...]:
    """Return the visibility values of ``author_id``'s posts the viewer may see.

    Block checks are the caller's job; this only reflects rules 3 to 7 of
    :func:`can_view` for a single author.
    """
    if viewer_id is not None and viewer_id == author_id:
        return VISIBILITIES
    if viewer_id is not None and viewer_follows_author:
        return (VISIBILITY_PUBLIC, VISIBILITY_FRIENDS)
    return (VISIBILITY_PUBLIC,)
