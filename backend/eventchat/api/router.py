"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from eventchat.api.routes import (
    auth, users, events, posts, follow, notifications, geo
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(events.router)
api_router.include_router(posts.router)
api_router.include_router(follow.router)
api_router.include_router(notifications.router)
api_router.include_router(geo.router)
