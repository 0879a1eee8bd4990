"""User endpoints."""

from fastapi import APIRouter

from app.dependencies import CurrentUser, DatabaseSession
from app.schemas.users import DoctorSummary, UserResponse
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: CurrentUser) -> UserResponse:
    """Get current user's profile."""
    return UserResponse.model_validate(current_user)


@router.get("/doctors", response_model=list[DoctorSummary])
async def list_doctors(current_user: CurrentUser, db: DatabaseSession) -> list[DoctorSummary]:
    """List doctors available for booking."""
    doctors = await UserService(db).list_doctors()
    return [DoctorSummary.model_validate(doctor) for doctor in doctors]
