from dataclasses import dataclass

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from assessment_api.core.deps import get_db
from assessment_api.core.errors import AuthError
from assessment_api.core.security import decode_access_token
from assessment_api.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The caller as the engine sees it."""

    id: int
    is_instructor: bool = False
    is_admin: bool = False

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, is_instructor=user.is_instructor, is_admin=user.is_admin)


def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    if credentials is None:
        raise AuthError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError) as exc:
        raise AuthError("Could not validate credentials") from exc

    user = db.get(User, user_id)
    if user is None:
        raise AuthError("User not found")
    return Principal.from_user(user)
