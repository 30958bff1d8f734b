"""
API Dependencies
Shared dependencies resolving the handles created by the application lifespan
"""
from fastapi import Request

from crm.core.config import Settings
from crm.domain.services.call_log_service import CallLogService
from crm.domain.services.click_to_call_service import ClickToCallService
from crm.domain.services.webhook_dispatcher import WebhookDispatcher
from crm.infrastructure.storage.database import Database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_webhook_dispatcher(request: Request) -> WebhookDispatcher:
    return request.app.state.webhook_dispatcher


def get_click_to_call_service(request: Request) -> ClickToCallService:
    return request.app.state.click_to_call_service


def get_call_log_service(request: Request) -> CallLogService:
    return request.app.state.call_log_service
