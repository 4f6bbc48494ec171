"""Router aggregations for public API endpoints."""

from fastapi import APIRouter

from auth_bridge.api.routes import health, telegram_auth

root_router = APIRouter()
root_router.include_router(health.router, tags=["health"])
root_router.include_router(telegram_auth.router)

__all__ = ["root_router"]
