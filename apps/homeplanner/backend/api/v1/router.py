"""
API V1 Router
=============

Main router for API v1 endpoints.
"""

from fastapi import APIRouter

from .endpoints import conversation, gateway, health

# Create v1 router
v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(health.router)
v1_router.include_router(gateway.router)
v1_router.include_router(conversation.router)
