"""Credential and bearer-token utilities.

Passwords are stored as bcrypt hashes (passlib). Sessions are stateless HS256
JWTs carrying the user id; nothing about a token is persisted server-side.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt  # PyJWT
from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.hash import bcrypt as bcrypt_hasher
from pymongo.database import Database

import config
from database import USERS, get_db
from errors import InvalidTokenError, TokenExpiredError, TokenMissingError, ValidationError

MIN_PASSWORD_LENGTH = 3

bearer = HTTPBearer(auto_error=False)


# -------------------------------------------------------------------
# Passwords
# -------------------------------------------------------------------
def check_password(password: Optional[str]) -> str:
    if not password:
        raise ValidationError("password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


def hash_password(password: Optional[str]) -> str:
    check_password(password)
    return bcrypt_hasher.using(rounds=config.BCRYPT_ROUNDS).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True iff ``password`` produced ``password_hash``.

    A mismatch returns False; a hash that is not bcrypt raises ValueError.
    """
    return bcrypt_hasher.verify(password, password_hash)


# -------------------------------------------------------------------
# Tokens
# -------------------------------------------------------------------
def issue_token(user_id: Any, username: str, minutes: Optional[int] = None) -> str:
    if minutes is None:
        minutes = config.JWT_EXPIRE_MIN
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(user_id),
        "username": username,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, config.SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: Optional[str]) -> Dict[str, Any]:
    if not token:
        raise TokenMissingError()
    try:
        return jwt.decode(token, config.SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except jwt.InvalidTokenError:
        raise InvalidTokenError()


def verify_token(token: Optional[str]) -> str:
    """Return the user id bound to ``token``."""
    data = decode_token(token)
    user_id = data.get("id")
    if not user_id:
        raise InvalidTokenError()
    return user_id


# -------------------------------------------------------------------
# FastAPI dependencies
# -------------------------------------------------------------------
def extract_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Optional[str]:
    """Token from an ``Authorization: Bearer`` header, or None."""
    return credentials.credentials if credentials else None


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(extract_token),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    user_id = verify_token(token)
    try:
        oid = ObjectId(user_id)
    except InvalidId:
        raise InvalidTokenError()
    user = db[USERS].find_one({"_id": oid})
    if not user:
        raise InvalidTokenError()
    request.state.user = user
    return user
