"""Comment endpoints: replies, threads, edits and comment likes."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from threadline.api.v1.dependencies import (
    CommentServiceDep,
    CurrentUserDep,
    SocialServiceDep,
    ViewerIdDep,
)
from threadline.core.settings import settings
from threadline.schemas.comment import CommentThreadNode, CommentUpdate, CommentView
from threadline.schemas.common import MessageResponse, Page
from threadline.schemas.social import LikeToggle

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/{comment_id}/replies", response_model=Page[CommentView])
def get_comment_replies(
    comment_id: int,
    viewer_id: ViewerIdDep,
    comments: CommentServiceDep,
    page: int = 1,
    limit: int = settings.default_page_size,
) -> Page[CommentView]:
    return comments.get_comment_replies(comment_id, viewer_id, page, limit)


@router.get("/{comment_id}/thread", response_model=CommentThreadNode)
def get_comment_thread(
    comment_id: int,
    viewer_id: ViewerIdDep,
    comments: CommentServiceDep,
    max_depth: Annotated[int | None, Query(alias="maxDepth")] = None,
) -> CommentThreadNode:
    """Return the comment and its reply tree down to ``maxDepth`` levels."""
    return comments.get_comment_thread(comment_id, viewer_id, max_depth)


@router.put("/{comment_id}", response_model=CommentView)
def update_comment(
    comment_id: int,
    payload: CommentUpdate,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> CommentView:
    return comments.update_comment(comment_id, current_user.id, payload.content)


@router.delete("/{comment_id}", response_model=MessageResponse)
def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> MessageResponse:
    comments.delete_comment(comment_id, current_user.id)
    return MessageResponse(message="Comment deleted successfully")


@router.post(
    "/{comment_id}/like",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def like_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.like_comment(current_user.id, comment_id)
    return MessageResponse(message="Comment liked")


@router.delete("/{comment_id}/like", response_model=MessageResponse)
def unlike_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.unlike_comment(current_user.id, comment_id)
    return MessageResponse(message="Comment unliked")


@router.post("/{comment_id}/toggle-like", response_model=LikeToggle)
def toggle_comment_like(
    comment_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> LikeToggle:
    return LikeToggle(liked=social.toggle_comment_like(current_user.id, comment_id))
