from fastapi import APIRouter

from pixelshelf.api import (
    assets,
    auth,
    chats,
    comments,
    follows,
    health,
    likes,
    notifications,
    payments,
    projects,
    search,
    trending,
    users,
    webhooks,
)

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(follows.router)
api_router.include_router(projects.router)
api_router.include_router(assets.router)
api_router.include_router(comments.router)
api_router.include_router(likes.router)
api_router.include_router(notifications.router)
api_router.include_router(chats.router)
api_router.include_router(search.router)
api_router.include_router(trending.router)
api_router.include_router(payments.router)
api_router.include_router(webhooks.router)
api_router.include_router(health.router)
