"""Security utilities for JWT access tokens."""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from krisefikser.core.config import settings


# =============================================================================
# Access Token (JWT bearer)
# =============================================================================

def create_access_token(user_id: UUID, role: str) -> str:
    """
    Create signed access JWT.

    Always signs with current secret (JWT_SECRET). Issuance normally happens in
    the login flow; this helper exists for the CLI and tests.
    """
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_access_token(token: str) -> dict:
    """
    Decode and verify access JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"])
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore
