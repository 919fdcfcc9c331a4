"""Post endpoints: authoring, the home feed, and a post's comments."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from threadline.api.v1.dependencies import (
    CommentServiceDep,
    ContentServiceDep,
    CurrentUserDep,
    FeedServiceDep,
    ViewerIdDep,
)
from threadline.core.settings import settings
from threadline.schemas.comment import CommentCreate, CommentView, CommentWithReplies
from threadline.schemas.common import MessageResponse, Page
from threadline.schemas.post import PostCreate, PostUpdate, PostView

router = APIRouter(prefix="/posts", tags=["posts"])

PageQuery = Annotated[int, Query(description="1-based page number")]
LimitQuery = Annotated[int, Query(description="Items per page")]


@router.post("/", response_model=PostView, status_code=status.HTTP_201_CREATED)
def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    posts: ContentServiceDep,
) -> PostView:
    """Publish a new post as the authenticated user."""
    return posts.create_post(
        current_user.id,
        payload.content,
        media_urls=payload.media_urls,
        visibility=payload.visibility,
    )


@router.get("/feed", response_model=Page[PostView])
def get_feed(
    current_user: CurrentUserDep,
    feed: FeedServiceDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Page[PostView]:
    """Return posts from followed accounts and the caller's own, newest first."""
    return feed.get_feed(current_user.id, page, limit)


@router.get("/user/{user_id}", response_model=Page[PostView])
def get_user_posts(
    user_id: int,
    viewer_id: ViewerIdDep,
    posts: ContentServiceDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
) -> Page[PostView]:
    return posts.get_user_posts(user_id, viewer_id, page, limit)


@router.get("/{post_id}", response_model=PostView)
def get_post(post_id: int, viewer_id: ViewerIdDep, posts: ContentServiceDep) -> PostView:
    return posts.get_post_by_id(post_id, viewer_id)


@router.put("/{post_id}", response_model=PostView)
def update_post(
    post_id: int,
    payload: PostUpdate,
    current_user: CurrentUserDep,
    posts: ContentServiceDep,
) -> PostView:
    return posts.update_post(
        post_id,
        current_user.id,
        content=payload.content,
        media_urls=payload.media_urls,
        visibility=payload.visibility,
    )


@router.delete("/{post_id}", response_model=MessageResponse)
def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    posts: ContentServiceDep,
) -> MessageResponse:
    posts.delete_post(post_id, current_user.id)
    return MessageResponse(message="Post deleted successfully")


@router.get("/{post_id}/comments", response_model=Page[CommentWithReplies])
def get_post_comments(
    post_id: int,
    viewer_id: ViewerIdDep,
    comments: CommentServiceDep,
    page: PageQuery = 1,
    limit: LimitQuery = settings.default_page_size,
    replies_limit: Annotated[int | None, Query(alias="repliesLimit")] = None,
) -> Page[CommentWithReplies]:
    """Return top-level comments, each with its first few replies."""
    return comments.get_post_comments(post_id, viewer_id, page, limit, replies_limit)


@router.post(
    "/{post_id}/comments",
    response_model=CommentView,
    status_code=status.HTTP_201_CREATED,
)
def create_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> CommentView:
    return comments.create_comment(
        post_id, current_user.id, payload.content, parent_id=payload.parent_id
    )
