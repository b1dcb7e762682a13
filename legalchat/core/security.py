# legalchat/core/security.py
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from jose import JWTError, jwt

from legalchat.core.config import settings

# JWT settings
ALGORITHM = settings.JWT_ALGORITHM
SECRET_KEY = settings.JWT_SECRET_KEY
ACCESS_TOKEN_EXPIRE_MINUTES = settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES


def create_access_token(
        subject: Union[str, Any],
        expires_delta: Optional[timedelta] = None,
        **claims: Any
) -> str:
    """
    Create a JWT access token. Extra claims (email, name) are copied into the payload.
    Tokens are issued by the auth service in production; this helper mints
    compatible tokens for tests and local tooling.
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject)}
    to_encode.update({k: v for k, v in claims.items() if v is not None})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decode a JWT access token
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
