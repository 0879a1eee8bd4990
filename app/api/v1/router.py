"""API v1 router configuration."""

from fastapi import APIRouter

from app.api.v1.endpoints import appointments, feedback, health, symptoms, users

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(users.router)
api_router.include_router(symptoms.router, tags=["Symptom Checker"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(feedback.router, prefix="/appointments", tags=["Feedback"])
