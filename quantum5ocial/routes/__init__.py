"""API routes."""

from fastapi import APIRouter

from quantum5ocial.routes import (
    admin,
    badges,
    chat,
    entanglements,
    feed,
    jobs,
    messages,
    orgs,
    products,
    profiles,
    qna,
)

api_router = APIRouter()

# Members
api_router.include_router(badges.router, prefix="/v1/badges", tags=["badges"])
api_router.include_router(profiles.router, prefix="/v1/profiles", tags=["profiles"])
api_router.include_router(entanglements.router, prefix="/v1/entanglements", tags=["entanglements"])
api_router.include_router(orgs.router, prefix="/v1/orgs", tags=["orgs"])

# Community
api_router.include_router(feed.router, prefix="/v1/feed", tags=["feed"])
api_router.include_router(qna.router, prefix="/v1/qna", tags=["qna"])
api_router.include_router(messages.router, prefix="/v1/messages", tags=["messages"])

# Marketplaces
api_router.include_router(jobs.router, prefix="/v1/jobs", tags=["jobs"])
api_router.include_router(products.router, prefix="/v1/products", tags=["products"])

# AI assistant
api_router.include_router(chat.router, prefix="/v1/chat", tags=["chat"])

# Admin endpoints (search index management)
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
