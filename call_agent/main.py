"""
Main entry point for the Steak Call Agent service.

FastAPI application serving Twilio voice webhooks plus a small admin API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import List

from fastapi import FastAPI, HTTPException, Request

from call_agent.config import get_settings
from call_agent.handlers import twilio_router
from call_agent.models.webhook_models import CustomerResponse, HealthCheckResponse
from call_agent.services.call_controller import CallController
from call_agent.services.database_service import DatabaseService
from call_agent.services.dialogue_controller import DialogueTurnController
from call_agent.services.generation_client import GenerationClient
from call_agent.services.notification_service import NotificationService
from call_agent.services.session_store import SessionStore
from call_agent.utils.exceptions import ConfigurationException, StorageUnavailable
from call_agent.utils.logger import setup_logger, get_logger

setup_logger()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler: build collaborators at startup, release them on shutdown."""
    logger.info("Starting Steak Call Agent...")

    settings = get_settings()

    db_service = DatabaseService()
    await db_service.init()

    generation_client = GenerationClient()
    await generation_client.connect()

    dialogue_controller = DialogueTurnController(
        session_store=SessionStore(db_service),
        database_service=db_service,
        generation_client=generation_client,
        notification_service=NotificationService(),
    )

    app.state.db_service = db_service
    app.state.call_controller = CallController(dialogue_controller)

    logger.info("Steak Call Agent started successfully")
    logger.info(f"Environment: {settings.environment}")
    logger.info("Webhook URL: https://<your-domain>/voice")

    yield

    logger.info("Steak Call Agent shutting down...")

    try:
        await generation_client.disconnect()
    except Exception as e:
        logger.error(f"Error closing generation client: {e}")

    await db_service.close()


app = FastAPI(
    title="Steak Call Agent",
    version="1.0.0",
    description="Answers calls, collects name, favorite color and steak preference, then texts cooking instructions",
    lifespan=lifespan
)

app.include_router(twilio_router)


@app.get("/health")
async def health_check(request: Request) -> HealthCheckResponse:
    """
    Health check endpoint.

    Returns:
        HealthCheckResponse with service status
    """
    db_service: DatabaseService = getattr(request.app.state, "db_service", None)
    db_ok = bool(db_service) and await db_service.health_check()

    return HealthCheckResponse(
        status="ok" if db_ok else "error",
        database="ok" if db_ok else "error",
        timestamp=datetime.utcnow()
    )


@app.get("/customers")
async def list_customers(request: Request) -> List[CustomerResponse]:
    """
    List collected customer records, newest first.
    """
    db_service: DatabaseService = getattr(request.app.state, "db_service", None)
    if db_service is None:
        raise HTTPException(status_code=503, detail="Service not ready")

    try:
        customers = await db_service.list_customers()
    except StorageUnavailable as e:
        logger.error(f"Error listing customers: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return [CustomerResponse.model_validate(customer) for customer in customers]


@app.get("/customers/{phone_number}")
async def get_customer(phone_number: str, request: Request) -> CustomerResponse:
    """
    Look up the stored record for one caller.
    """
    db_service: DatabaseService = getattr(request.app.state, "db_service", None)
    if db_service is None:
        raise HTTPException(status_code=503, detail="Service not ready")

    try:
        customer = await db_service.get_customer(phone_number)
    except StorageUnavailable as e:
        logger.error(f"Error getting customer: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")

    return CustomerResponse.model_validate(customer)


def main():
    """Main entry point for running the service."""
    import uvicorn

    try:
        settings = get_settings()
    except ConfigurationException as e:
        logger.critical(str(e))
        raise SystemExit(1)

    logger.info(f"Starting Steak Call Agent on {settings.host}:{settings.port}")

    uvicorn.run(
        "call_agent.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False
    )


if __name__ == "__main__":
    main()
