from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import config
from .db import get_session
from .models import User


# Use PBKDF2-SHA256 to avoid platform-specific bcrypt issues/warnings.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def get_current_user(
    request: Request, db: Session = Depends(get_session)
) -> Optional[User]:
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    return db.get(User, int(user_id))


def has_role(username: str, role: str) -> bool:
    admins = config.admin_usernames()
    if role == "admin":
        return username in admins
    if role == "moderator":
        # admins can do everything moderators can
        return username in admins or username in config.moderator_usernames()
    return False


def is_moderator(user: Optional[User]) -> bool:
    return bool(user) and has_role(user.username, "moderator")


def require_moderator(user: Optional[User] = Depends(get_current_user)):
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    if not is_moderator(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)
    return user
