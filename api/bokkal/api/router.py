from fastapi import APIRouter

from bokkal.api.routes import admin, events, health, places

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(admin.router, prefix="/admin", tags=["moderation"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
