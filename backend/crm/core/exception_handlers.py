"""
Exception Handlers
Maps service exceptions to HTTP responses
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from crm.domain.services.click_to_call_service import ContactNotFoundError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)


async def provider_not_configured_handler(_request: Request, exc: ProviderNotConfiguredError) -> JSONResponse:
    logger.warning(f"OpenPhone not configured: {exc.message}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": exc.message},
    )


async def contact_not_found_handler(_request: Request, exc: ContactNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": exc.message},
    )
