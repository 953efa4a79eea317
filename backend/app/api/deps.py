"""FastAPI dependencies for the API layer."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.errors import PermissionDeniedError, ValidationError
from app.core.security import decode_access_token
from app.database import get_db
from app.models import User
from app.services import membership
from app.services.messages import MessageTarget

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Retrieve the current user from the identity token."""

    if credentials is None:
        raise _unauthorized()
    return get_user_from_token(credentials.credentials, db)


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve a user from a JWT token or raise an HTTP 401 error."""

    payload = decode_access_token(token)
    sub = payload.get("sub")
    if sub is None:
        raise _unauthorized()

    try:
        user_id = int(sub)
    except (TypeError, ValueError):
        raise _unauthorized() from None

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized()
    return user


def require_read_access(target: MessageTarget, user_id: int, db: Session) -> None:
    """Private channels are readable by members; conversations by participants."""

    if target.channel_id is not None:
        channel = membership.get_channel(db, target.channel_id)
        membership.ensure_channel_access(db, channel, user_id)
    else:
        membership.ensure_participant(db, target.conversation_id, user_id)


def require_post_access(target: MessageTarget, user_id: int, db: Session) -> None:
    """Posting needs channel membership in a live channel, or participation."""

    if target.channel_id is not None:
        channel = membership.get_channel(db, target.channel_id)
        if channel.is_archived:
            raise ValidationError("Channel is archived")
        if not membership.is_channel_member(db, channel.id, user_id):
            raise PermissionDeniedError("Join the channel before posting")
    else:
        membership.ensure_participant(db, target.conversation_id, user_id)
