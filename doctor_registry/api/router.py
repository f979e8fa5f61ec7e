"""API router configuration."""

from fastapi import APIRouter

from doctor_registry.api.endpoints import health, registration

api_router = APIRouter()

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(registration.router, tags=["Registration"])
