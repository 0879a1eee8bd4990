"""User lookups for identity resolution and booking snapshots."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.models.users import users
from app.schemas.users import UserRole


class UserService:
    """Read-side service for users provisioned by the identity service."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def get_user_by_medical_id(self, medical_id: str) -> dict[str, Any] | None:
        """Get user by medical ID."""
        stmt = select(users).where(users.c.medical_id == medical_id)
        result = await self.db.execute(stmt)
        user = result.mappings().first()
        return dict(user) if user else None

    async def require_user(
        self,
        medical_id: str,
        role: UserRole | None = None,
    ) -> dict[str, Any]:
        """
        Get an active user, optionally of a given role.

        Raises:
            NotFoundException: If no such active user exists
        """
        user = await self.get_user_by_medical_id(medical_id)
        label = role.value.capitalize() if role else "User"

        if not user or not user["is_active"]:
            raise NotFoundException(f"{label} {medical_id} not found")
        if role and user["role"] != role.value:
            raise NotFoundException(f"{label} {medical_id} not found")
        return user

    async def list_doctors(self) -> list[dict[str, Any]]:
        """List active doctors ordered by name."""
        stmt = (
            select(users)
            .where(users.c.role == UserRole.DOCTOR.value, users.c.is_active.is_(True))
            .order_by(users.c.full_name)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]
