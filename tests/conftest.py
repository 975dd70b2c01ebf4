"""
Pytest configuration and fixtures for Steak Call Agent tests.
"""

import os

# Set environment variables before importing application modules
os.environ.setdefault("OPENAI_API_KEY", "test_openai_key")
os.environ.setdefault("SKIP_WEBHOOK_SIGNATURE_VALIDATION", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_customer_data.db")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest
from unittest.mock import AsyncMock

from call_agent.models.conversation import CustomerRecord, SteakPreference
from call_agent.services.database_service import DatabaseService
from call_agent.services.dialogue_controller import DialogueTurnController
from call_agent.services.generation_client import GenerationClient
from call_agent.services.notification_service import NotificationService
from call_agent.services.session_store import SessionStore

# Assistant reply that mentions no name cue, color or doneness word
NEUTRAL_REPLY = "Thanks! Could you tell me a bit more?"

CALLER_NUMBER = "+15551234567"


@pytest.fixture
async def database_service(tmp_path):
    """Database service backed by a temporary SQLite file."""
    service = DatabaseService(database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await service.init()
    yield service
    await service.close()


@pytest.fixture
def session_store(database_service):
    """Session store on the temporary database."""
    return SessionStore(database_service)


@pytest.fixture
def mock_generation_client():
    """Generation client that always answers with a neutral reply."""
    mock = AsyncMock(spec=GenerationClient)
    mock.generate = AsyncMock(return_value=NEUTRAL_REPLY)
    return mock


@pytest.fixture
def mock_notification_service():
    """Notification service that reports successful delivery."""
    mock = AsyncMock(spec=NotificationService)
    mock.send_steak_instructions = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def dialogue_controller(
    session_store,
    database_service,
    mock_generation_client,
    mock_notification_service,
):
    """Dialogue controller wired to a real store and mocked remote services."""
    return DialogueTurnController(
        session_store=session_store,
        database_service=database_service,
        generation_client=mock_generation_client,
        notification_service=mock_notification_service,
        system_prompt="You are a test assistant.",
        context_window_size=6,
    )


@pytest.fixture
def sample_customer_record():
    """Completed customer record."""
    return CustomerRecord(
        caller_address=CALLER_NUMBER,
        name="Sam",
        favorite_color="blue",
        steak_preference=SteakPreference.MEDIUM_WELL,
    )


@pytest.fixture
def sample_gather_payload():
    """Sample Twilio /gather form payload."""
    return {
        "CallSid": "CA123456",
        "From": CALLER_NUMBER,
        "To": "+15557654321",
        "SpeechResult": "Hi, my name is Sam",
    }
