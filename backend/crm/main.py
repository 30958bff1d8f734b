"""
FastAPI Application Entry Point
"""
import sys
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crm.api.v1.routes import api_router
from crm.core.config import get_settings
from crm.core.exception_handlers import contact_not_found_handler, provider_not_configured_handler
from crm.core.validation import validate_config_on_startup
from crm.domain.services.call_log_service import CallLogService
from crm.domain.services.click_to_call_service import (
    ClickToCallService,
    ContactNotFoundError,
    ProviderNotConfiguredError,
)
from crm.domain.services.pending_call_ledger import PendingCallLedger
from crm.domain.services.reconciliation_service import CallReconciliationService
from crm.domain.services.webhook_dispatcher import WebhookDispatcher
from crm.infrastructure.storage.database import Database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.
    
    Startup:
    - Validates configuration (strict in production)
    - Opens the database and creates missing tables
    - Expires pending calls older than the configured TTL
    - Wires services onto app.state
    
    Shutdown:
    - Disposes the database engine
    """
    settings = get_settings()
    
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    
    logger.info("Starting CRM call service...")
    
    try:
        validate_config_on_startup(settings, strict=settings.is_production)
    except RuntimeError as e:
        logger.error(f"Startup failed: {e}")
        raise
    
    database = Database(settings.database_url, echo=settings.database_echo)
    database.create_all()
    
    with database.session() as session:
        cutoff = datetime.utcnow() - timedelta(minutes=settings.pending_call_ttl_minutes)
        PendingCallLedger(session).expire_stale(cutoff)
    
    reconciliation = CallReconciliationService(database)
    call_log = CallLogService(database)
    
    app.state.settings = settings
    app.state.database = database
    app.state.call_log_service = call_log
    app.state.click_to_call_service = ClickToCallService(database)
    app.state.webhook_dispatcher = WebhookDispatcher(reconciliation, call_log)
    
    logger.info("CRM call service started successfully")
    
    yield
    
    logger.info("Shutting down CRM call service...")
    database.dispose()
    logger.info("CRM call service shutdown complete")


app = FastAPI(
    title="CRM Call Service",
    description="Contacts, click-to-call and OpenPhone call reconciliation",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ProviderNotConfiguredError, provider_not_configured_handler)
app.add_exception_handler(ContactNotFoundError, contact_not_found_handler)

app.include_router(api_router, prefix=get_settings().api_prefix)


@app.get("/")
async def root():
    return {"message": "CRM Call Service API", "status": "running"}


@app.get("/health")
async def health_check():
    """Health check endpoint. Reports database connectivity."""
    database: Database = app.state.database
    database_ok = await asyncio.to_thread(database.ping)
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "unavailable",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
