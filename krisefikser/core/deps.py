"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from krisefikser.core.security import decode_access_token
from krisefikser.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request
    (closing rolls back anything a failed service call left uncommitted).
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Get authenticated user from the Authorization bearer token.

    Validates:
    - Token exists
    - JWT is valid and not expired
    - User exists and is active

    Raises:
        HTTPException 401: Authentication failed
    """
    # Import here to avoid circular imports
    from krisefikser.db.models import User

    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = db.get(User, _parse_uuid(payload.get("sub")))
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    return user


def _parse_uuid(value):
    try:
        return UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")


def require_roles(allowed_roles: set):
    """
    Dependency factory for role-based authorization.

    Uses enum sets from db.enums.permissions (not strings) to prevent drift.

    Usage:
        @router.post("/", dependencies=[Depends(require_roles(ROLES_CAN_MANAGE_INCIDENTS))])
    """
    from krisefikser.db.enums import Role

    def dependency(request: Request, db: Session = Depends(get_db)):
        user = get_current_user(request, db)
        if not Role.has_value(user.role) or Role(user.role) not in allowed_roles:
            raise HTTPException(
                status_code=403,
                detail=f"Role '{user.role}' not authorized for this action",
            )
        return user
    return dependency
