from datetime import datetime, timedelta, timezone

from jose import jwt

from ticketdesk.core.config import settings

ALGO = "HS256"
ROLES = ("admin", "creator", "user")


def create_access_token(subject: str, role: str = "user", expires_minutes: int | None = None) -> str:
    """Mint a token shaped like the identity provider's. Used by seed scripts and tests."""
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "type": "access", "exp": exp, "user_metadata": {"role": role}}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO], options={"verify_aud": False})


def role_from_claims(claims: dict) -> str:
    meta = claims.get("user_metadata") or {}
    role = meta.get("role") or "user"
    return role if role in ROLES else "user"
