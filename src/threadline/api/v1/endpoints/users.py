"""User profile endpoints."""

from fastapi import APIRouter

from threadline.api.v1.dependencies import CurrentUserDep, UserServiceDep, ViewerIdDep
from threadline.schemas.common import MessageResponse
from threadline.schemas.user import OwnProfile, UserProfile, UserUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=OwnProfile)
def get_me(current_user: CurrentUserDep, users: UserServiceDep) -> OwnProfile:
    return users.get_own_profile(current_user.id)


@router.put("/me", response_model=OwnProfile)
def update_me(
    payload: UserUpdate,
    current_user: CurrentUserDep,
    users: UserServiceDep,
) -> OwnProfile:
    """Update the caller's profile fields; omitted fields are unchanged."""
    return users.update_profile(current_user.id, payload)


@router.delete("/me", response_model=MessageResponse)
def delete_me(current_user: CurrentUserDep, users: UserServiceDep) -> MessageResponse:
    """Close the caller's account and remove their relationships."""
    users.delete_account(current_user.id)
    return MessageResponse(message="Account deleted successfully")


@router.get("/{user_id}", response_model=UserProfile)
def get_profile(user_id: int, viewer_id: ViewerIdDep, users: UserServiceDep) -> UserProfile:
    return users.get_profile(user_id, viewer_id)
