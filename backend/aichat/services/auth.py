"""
auth.py — Password hashing and session login helpers.

Sessions are signed cookies managed by Starlette's SessionMiddleware
(configured in main.py); logging in just stores the user's id under
SESSION_USER_KEY in request.session.

PASSWORD HASHING:
  bcrypt only looks at the first 72 bytes of its input (and bcrypt 5.x
  raises ValueError beyond that).  Passwords are first reduced to the
  base64 of their SHA-256 digest, 44 ASCII bytes, so any length and any
  alphabet hashes the same way.
"""

import base64
import hashlib

import bcrypt
from fastapi import Request

from aichat.models.tables import User

SESSION_USER_KEY = "user_id"


def _prehash(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_prehash(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_prehash(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def login_user(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id


def logout_user(request: Request) -> None:
    request.session.clear()


def session_user_id(request: Request) -> int | None:
    value = request.session.get(SESSION_USER_KEY)
    return value if isinstance(value, int) else None
