"""
Unit tests for CallController.

Tests the mapping from dialogue outcomes to call instructions.
"""

import pytest
from unittest.mock import Mock, AsyncMock

from call_agent.config import get_settings
from call_agent.models.call_context import CallContext
from call_agent.models.conversation import CustomerRecord, SteakPreference
from call_agent.models.turn_outcome import Complete, Continue, Failed
from call_agent.services.call_controller import CallController, GATHER_ACTION_URL
from call_agent.services.dialogue_controller import FALLBACK_PROMPT
from call_agent.utils.exceptions import StorageUnavailable


@pytest.fixture
def mock_dialogue_controller():
    """Create mock dialogue controller."""
    dialogue = Mock()
    dialogue.start_session = AsyncMock()
    dialogue.handle_turn = AsyncMock()
    return dialogue


@pytest.fixture
def call_controller(mock_dialogue_controller):
    """Create call controller with mocked dialogue."""
    return CallController(dialogue_controller=mock_dialogue_controller)


@pytest.fixture
def context():
    return CallContext(
        call_id="CA123456",
        caller_number="+15551234567",
        recipient_number="+15557654321",
        status="in-progress",
    )


class TestHandleInboundCall:
    """Tests for handle_inbound_call method."""

    @pytest.mark.asyncio
    async def test_greets_and_gathers(self, call_controller, context):
        instructions = await call_controller.handle_inbound_call(context)

        assert instructions.call_id == "CA123456"
        assert instructions.dialogue_status == "continue"
        assert instructions.speech.text == get_settings().greeting_message
        assert instructions.gather.action_url == GATHER_ACTION_URL
        assert instructions.gather.input == "speech"
        assert instructions.should_hangup is False

        call_controller.dialogue.start_session.assert_called_once_with("CA123456", "+15551234567")

    @pytest.mark.asyncio
    async def test_storage_failure_still_greets(self, call_controller, context):
        call_controller.dialogue.start_session.side_effect = StorageUnavailable("db down")

        instructions = await call_controller.handle_inbound_call(context)

        assert instructions.speech.text == get_settings().greeting_message
        assert instructions.gather is not None


class TestHandleSpeech:
    """Tests for handle_speech method."""

    @pytest.mark.asyncio
    async def test_continue_keeps_listening(self, call_controller, context):
        call_controller.dialogue.handle_turn.return_value = Continue("What's your favorite color?")

        instructions = await call_controller.handle_speech(context, "my name is Sam")

        assert instructions.dialogue_status == "continue"
        assert instructions.speech.text == "What's your favorite color?"
        assert instructions.gather is not None
        assert instructions.should_hangup is False
        call_controller.dialogue.handle_turn.assert_called_once_with(
            "CA123456", "+15551234567", "my name is Sam"
        )

    @pytest.mark.asyncio
    async def test_complete_hangs_up(self, call_controller, context):
        record = CustomerRecord(
            caller_address="+15551234567",
            name="Sam",
            favorite_color="blue",
            steak_preference=SteakPreference.RARE,
        )
        call_controller.dialogue.handle_turn.return_value = Complete("Thanks Sam!", record=record)

        instructions = await call_controller.handle_speech(context, "rare")

        assert instructions.dialogue_status == "complete"
        assert instructions.speech.text == "Thanks Sam!"
        assert instructions.gather is None
        assert instructions.should_hangup is True

    @pytest.mark.asyncio
    async def test_failed_keeps_listening(self, call_controller, context):
        call_controller.dialogue.handle_turn.return_value = Failed(FALLBACK_PROMPT)

        instructions = await call_controller.handle_speech(context, "blue")

        assert instructions.dialogue_status == "failed"
        assert instructions.speech.text == FALLBACK_PROMPT
        assert instructions.gather is not None
        assert instructions.should_hangup is False

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_fallback(self, call_controller, context):
        call_controller.dialogue.handle_turn.side_effect = RuntimeError("boom")

        instructions = await call_controller.handle_speech(context, "blue")

        assert instructions.dialogue_status == "failed"
        assert instructions.speech.text == FALLBACK_PROMPT

    @pytest.mark.asyncio
    async def test_missing_speech_is_empty_utterance(self, call_controller, context):
        call_controller.dialogue.handle_turn.return_value = Continue("Sorry, could you repeat that?")

        await call_controller.handle_speech(context, None)

        call_controller.dialogue.handle_turn.assert_called_once_with("CA123456", "+15551234567", "")
