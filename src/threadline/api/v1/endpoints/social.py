"""Follow, block and post-like endpoints."""

from fastapi import APIRouter, status

from threadline.api.v1.dependencies import CurrentUserDep, SocialServiceDep
from threadline.core.settings import settings
from threadline.schemas.common import MessageResponse, Page
from threadline.schemas.social import BlockedEntry, FollowEntry, FollowStatus, LikeToggle

router = APIRouter(prefix="/social", tags=["social"])


# --- Follows ----------------------------------------------------------------------


@router.post(
    "/follow/{user_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def follow_user(
    user_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.follow_user(current_user.id, user_id)
    return MessageResponse(message="User followed successfully")


@router.delete("/follow/{user_id}", response_model=MessageResponse)
def unfollow_user(
    user_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.unfollow_user(current_user.id, user_id)
    return MessageResponse(message="User unfollowed successfully")


@router.get("/follow/{user_id}/status", response_model=FollowStatus)
def follow_status(
    user_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> FollowStatus:
    return FollowStatus(is_following=social.is_following(current_user.id, user_id))


@router.get("/{user_id}/followers", response_model=Page[FollowEntry])
def get_followers(
    user_id: int,
    social: SocialServiceDep,
    page: int = 1,
    limit: int = settings.default_page_size,
) -> Page[FollowEntry]:
    return social.get_followers(user_id, page, limit)


@router.get("/{user_id}/following", response_model=Page[FollowEntry])
def get_following(
    user_id: int,
    social: SocialServiceDep,
    page: int = 1,
    limit: int = settings.default_page_size,
) -> Page[FollowEntry]:
    return social.get_following(user_id, page, limit)


# --- Post likes -------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/like",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def like_post(
    post_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.like_post(current_user.id, post_id)
    return MessageResponse(message="Post liked")


@router.delete("/posts/{post_id}/like", response_model=MessageResponse)
def unlike_post(
    post_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.unlike_post(current_user.id, post_id)
    return MessageResponse(message="Post unliked")


@router.post("/posts/{post_id}/toggle-like", response_model=LikeToggle)
def toggle_post_like(
    post_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> LikeToggle:
    """Like the post if the caller has not, otherwise remove the like."""
    return LikeToggle(liked=social.toggle_post_like(current_user.id, post_id))


# --- Blocks -----------------------------------------------------------------------


@router.post(
    "/block/{user_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def block_user(
    user_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.block_user(current_user.id, user_id)
    return MessageResponse(message="User blocked successfully")


@router.delete("/block/{user_id}", response_model=MessageResponse)
def unblock_user(
    user_id: int,
    current_user: CurrentUserDep,
    social: SocialServiceDep,
) -> MessageResponse:
    social.unblock_user(current_user.id, user_id)
    return MessageResponse(message="User unblocked successfully")


@router.get("/blocked", response_model=Page[BlockedEntry])
def get_blocked_users(
    current_user: CurrentUserDep,
    social: SocialServiceDep,
    page: int = 1,
    limit: int = settings.default_page_size,
) -> Page[BlockedEntry]:
    return social.get_blocked_users(current_user.id, page, limit)
