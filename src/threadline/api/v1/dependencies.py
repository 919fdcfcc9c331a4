"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from threadline.core.security import InvalidTokenError, decode_user_id
from threadline.db.session import get_db
from threadline.models import User
from threadline.repositories.user_repo import UserRepository
from threadline.services.batch import BatchService
from threadline.services.comments import CommentService
from threadline.services.content import ContentService
from threadline.services.feed import FeedService
from threadline.services.notifications import NotificationService
from threadline.services.search import SearchService
from threadline.services.social import SocialService
from threadline.services.trending import TrendingService
from threadline.services.users import UserService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated, active user

    Raises:
        HTTPException: If the token is invalid or the account is closed
    """
    try:
        user_id = decode_user_id(credentials.credentials)
    except InvalidTokenError as err:
        raise _unauthorized() from err

    user = UserRepository(db).get_active(user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_optional_user_id(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
) -> int | None:
    """Return the caller's id when a bearer token is present, else ``None``.

    A token that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    try:
        return decode_user_id(credentials.credentials)
    except InvalidTokenError as err:
        raise _unauthorized() from err


# Type aliases for the auth dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
ViewerIdDep = Annotated[int | None, Depends(get_optional_user_id)]


def get_batch_service(db: SessionDep) -> BatchService:
    return BatchService(db)


def get_content_service(db: SessionDep) -> ContentService:
    return ContentService(db)


def get_feed_service(db: SessionDep) -> FeedService:
    return FeedService(db)


def get_comment_service(db: SessionDep) -> CommentService:
    return CommentService(db)


def get_social_service(db: SessionDep) -> SocialService:
    return SocialService(db)


def get_search_service(db: SessionDep) -> SearchService:
    return SearchService(db)


def get_trending_service(db: SessionDep) -> TrendingService:
    return TrendingService(db)


def get_user_service(db: SessionDep) -> UserService:
    return UserService(db)


def get_notification_service(db: SessionDep) -> NotificationService:
    return NotificationService(db)


BatchServiceDep = Annotated[BatchService, Depends(get_batch_service)]
ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]
FeedServiceDep = Annotated[FeedService, Depends(get_feed_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
SocialServiceDep = Annotated[SocialService, Depends(get_social_service)]
SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]
TrendingServiceDep = Annotated[TrendingService, Depends(get_trending_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]
