"""Root API router for the application."""

from fastapi import APIRouter

from tasktimer.api.routes import auth, focus, health, tasks

api_router = APIRouter()
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(tasks.router, tags=["tasks"])
api_router.include_router(focus.router, tags=["focus"])
