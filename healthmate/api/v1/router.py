"""API v1 router configuration."""

from fastapi import APIRouter

from healthmate.api.v1.endpoints import (
    admin,
    appointments,
    assistant,
    auth,
    dashboard,
    doctors,
    education,
    health,
    mood,
    navigation,
    notifications,
    prescriptions,
    profiles,
    realtime,
    records,
    slots,
    vitals,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(profiles.router, tags=["Profiles"])
api_router.include_router(navigation.router, tags=["Navigation"])
api_router.include_router(dashboard.router, tags=["Dashboard"])
api_router.include_router(doctors.router, tags=["Doctors"])
api_router.include_router(slots.router, tags=["Slots"])
api_router.include_router(appointments.router, tags=["Appointments"])
api_router.include_router(records.router, tags=["Medical Records"])
api_router.include_router(vitals.router, tags=["Vitals"])
api_router.include_router(prescriptions.router, tags=["Prescriptions"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(mood.router, tags=["Mood"])
api_router.include_router(education.router, tags=["Education"])
api_router.include_router(assistant.router, tags=["Assistant"])
api_router.include_router(realtime.router, tags=["Realtime"])
api_router.include_router(admin.router, tags=["Admin"])
