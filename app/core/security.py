"""Password hashing and signed access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import jwt
from passlib.context import CryptContext
from app.core.config import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(subject: str, claims: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    """Sign a token carrying the user's role, permissions and clinic scope"""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    )
    payload = {
        **claims,
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "token_type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token of the given type, otherwise None"""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require": ["exp", "sub"]}
        )
    except jwt.PyJWTError:
        return None

    if payload.get("token_type") != token_type:
        return None
    return payload
