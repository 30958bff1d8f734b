"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from crm.api.v1.endpoints import (
    calls,
    pending_calls,
    webhooks,
)

api_router = APIRouter()

api_router.include_router(webhooks.router)
api_router.include_router(calls.router)
api_router.include_router(pending_calls.router)
