"""Convert repository records into API schemas."""
from __future__ import annotations

from threadline.models import User
from threadline.repositories.comment_repo import CommentRecord
from threadline.repositories.post_repo import PostRecord
from threadline.schemas.comment import CommentView
from threadline.schemas.post import PostView
from threadline.schemas.user import UserSummary


def to_user_summary(user: User) -> UserSummary:
    return UserSummary.model_validate(user)


def to_post_view(record: PostRecord) -> PostView:
    """Flatten a post record; ``is_liked`` is already computed by the query."""
    post = record.post
    return PostView(
        id=post.id,
        author_id=post.author_id,
        author=to_user_summary(post.author),
        content=post.content,
        media_urls=list(post.media_urls or []),
        visibility=post.visibility,
        created_at=post.created_at,
        updated_at=post.updated_at,
        like_count=record.like_count,
        comment_count=record.comment_count,
        is_liked=record.is_liked,
    )


def to_comment_view(record: CommentRecord) -> CommentView:
    comment = record.comment
    return CommentView(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        author_id=comment.author_id,
        author=to_user_summary(comment.author),
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        like_count=record.like_count,
        is_liked=record.is_liked,
    )
