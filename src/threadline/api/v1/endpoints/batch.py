"""Bulk lookups keyed by id."""

from fastapi import APIRouter

from threadline.api.v1.dependencies import BatchServiceDep, CurrentUserDep
from threadline.schemas.batch import BatchCommentIds, BatchPostIds, BatchUserIds
from threadline.schemas.comment import CommentView
from threadline.schemas.post import PostView
from threadline.schemas.user import UserSearchResult

router = APIRouter(prefix="/batch", tags=["batch"])


@router.post("/posts", response_model=dict[int, PostView])
def batch_get_posts(
    payload: BatchPostIds,
    current_user: CurrentUserDep,
    batch: BatchServiceDep,
) -> dict[int, PostView]:
    """Return the requested posts the caller may see, keyed by id."""
    return batch.get_posts(payload.post_ids, current_user.id)


@router.post("/users", response_model=dict[int, UserSearchResult])
def batch_get_users(
    payload: BatchUserIds,
    current_user: CurrentUserDep,
    batch: BatchServiceDep,
) -> dict[int, UserSearchResult]:
    return batch.get_users(payload.user_ids, current_user.id)


@router.post("/comments", response_model=dict[int, CommentView])
def batch_get_comments(
    payload: BatchCommentIds,
    current_user: CurrentUserDep,
    batch: BatchServiceDep,
) -> dict[int, CommentView]:
    return batch.get_comments(payload.comment_ids, current_user.id)
