from fastapi import APIRouter

from physiobot.api.routes import assessments, dashboard, rom, users

api_router = APIRouter()

api_router.include_router(users.router, tags=["users"])
api_router.include_router(assessments.router, tags=["assessments"])
api_router.include_router(rom.router, tags=["rom"])
api_router.include_router(dashboard.router, tags=["dashboard"])
