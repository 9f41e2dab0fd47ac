from fastapi import APIRouter

from hostel.api.v1 import admin, bookings, buildings, health


api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(buildings.router, prefix="/buildings", tags=["buildings"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
