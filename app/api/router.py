"""API router configuration.

This module configures the main API router and includes all endpoint routers
for different features of the application.
"""

from fastapi import APIRouter

from app.api.endpoints import (
    appointments,
    auth,
    exercises,
    health,
    messages,
    notifications,
    nutrition,
    programs,
    stats,
    users,
    workouts,
)

api_router = APIRouter()

# Include all API routers
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(programs.router, prefix="/programs", tags=["programs"])
api_router.include_router(workouts.router, prefix="/workouts", tags=["workouts"])
api_router.include_router(exercises.router, prefix="/exercises", tags=["exercises"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(messages.router, prefix="/messages", tags=["messages"])
api_router.include_router(nutrition.router, prefix="/nutrition", tags=["nutrition"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(stats.router, prefix="/stats", tags=["stats"])
