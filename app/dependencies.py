"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token
from app.database import get_db
from app.services.triage_client import GeminiTriageClient, TriageClient
from app.services.user_service import UserService

# Security
security = HTTPBearer(auto_error=False)


async def get_current_medical_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str:
    """
    Extract and validate the caller's medical ID from the JWT.

    Args:
        credentials: Bearer token credentials

    Returns:
        Medical ID from the ``sub`` claim

    Raises:
        HTTPException: If token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    medical_id = payload.get("sub")
    if not medical_id or not isinstance(medical_id, str):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return medical_id


async def get_current_user(
    medical_id: Annotated[str, Depends(get_current_medical_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """
    Get current user from database.

    Args:
        medical_id: Medical ID from JWT token
        db: Database session

    Returns:
        User data from database

    Raises:
        HTTPException: If user not found or inactive
    """
    user = await UserService(db).get_user_by_medical_id(medical_id)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )

    return user


def get_triage_client() -> TriageClient:
    """Provide the symptom triage client; overridden with a stub in tests."""
    return GeminiTriageClient()


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[dict, Depends(get_current_user)]
TriageClientDep = Annotated[TriageClient, Depends(get_triage_client)]
