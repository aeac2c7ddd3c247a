from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi.security import HTTPBearer
from jose import JWTError, jwt

from breeqa.core.config import settings
from breeqa.core.errors import Unauthenticated

# auto_error=False: a missing header must surface as our Unauthenticated envelope
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    email: Optional[str]


def _normalize_token(token: str) -> str:
    """
    Make token decoding resilient to common Swagger / copy-paste issues:
    - Leading/trailing whitespace/newlines
    - Surrounding quotes
    - Accidentally including the 'Bearer ' prefix in the token field
    """
    if token is None:
        return ""

    t = token.strip()

    if (t.startswith('"') and t.endswith('"')) or (t.startswith("'") and t.endswith("'")):
        t = t[1:-1].strip()

    if t.lower().startswith("bearer "):
        t = t[7:].strip()

    return t


def create_access_token(
    subject: str,
    email: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Mint an access token in the same shape the auth provider issues.
    """
    now = datetime.now(timezone.utc)
    expire_dt = now + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "exp": int(expire_dt.timestamp()),
        "iat": int(now.timestamp()),
    }
    if email:
        to_encode["email"] = email

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenIdentity:
    token = _normalize_token(token)
    if not token:
        raise Unauthenticated("Invalid token")

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require_sub": True, "require_exp": True},
        )
    except JWTError:
        # expired signature, bad format, bad signature, wrong algorithm, ...
        raise Unauthenticated("Invalid token")

    sub = payload.get("sub")
    if not sub:
        raise Unauthenticated("Invalid token")

    email = payload.get("email")
    return TokenIdentity(user_id=str(sub), email=email if isinstance(email, str) else None)
