"""API v1 router configuration."""

from fastapi import APIRouter

from ubs_booking.api.v1.endpoints import appointments, doctors, health, units

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(doctors.router, prefix="/doctor", tags=["Doctor"])
api_router.include_router(units.router, prefix="/ubs", tags=["Health Units"])
