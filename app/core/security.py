from datetime import datetime, timedelta
from typing import Optional

import jwt

from app.core.config import settings

ALGORITHM = "HS256"


def create_access_token(principal: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Signs a bearer token asserting `principal` as the caller.
    The service never issues these over HTTP; identity is established
    by whoever holds the secret (see seed.py).
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(principal),
        "exp": datetime.utcnow() + expires_delta,
        "type": "access"
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


def verify_access_token(token: str) -> Optional[str]:
    """Returns the principal carried by a valid access token, else None."""
    try:
        payload = jwt.decode(token, settings.secret_key,
                             algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None

    principal = payload.get("sub")
    if not principal or payload.get("type") != "access":
        return None

    return principal
