"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from eventhub.api.routes import admin, auth, categories, contact, events, locations, settings, tickets, users

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(locations.router)
api_router.include_router(categories.router)
api_router.include_router(tickets.router)
api_router.include_router(users.router)
api_router.include_router(admin.router)
api_router.include_router(settings.router)
api_router.include_router(contact.router)
