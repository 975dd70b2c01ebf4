"""
Call controller for protocol-agnostic business logic.

Maps call events to dialogue operations and dialogue outcomes to
CallInstructions that protocol handlers render (TwiML for Twilio).
"""

from call_agent.config import get_settings
from call_agent.models.call_context import CallContext
from call_agent.models.call_instructions import (
    CallInstructions,
    GatherInstruction,
    SpeechInstruction,
)
from call_agent.models.turn_outcome import TurnOutcome, Failed
from call_agent.services.dialogue_controller import DialogueTurnController, FALLBACK_PROMPT
from call_agent.utils.exceptions import StorageUnavailable
from call_agent.utils.logger import get_logger, set_call_context

logger = get_logger(__name__)

GATHER_ACTION_URL = "/gather"


class CallController:
    """
    Protocol-agnostic call controller.

    Every path returns instructions that keep the caller on the line unless
    the dialogue is complete.
    """

    def __init__(self, dialogue_controller: DialogueTurnController):
        """
        Initialize call controller.

        Args:
            dialogue_controller: Turn-level dialogue logic
        """
        self.dialogue = dialogue_controller
        self.settings = get_settings()

    def _speech(self, text: str) -> SpeechInstruction:
        return SpeechInstruction(
            text=text,
            voice=self.settings.say_voice,
            language=self.settings.say_language,
        )

    def _gather(self) -> GatherInstruction:
        return GatherInstruction(
            action_url=GATHER_ACTION_URL,
            timeout_seconds=self.settings.gather_timeout,
        )

    def _listen(self, call_id: str, text: str, status: str = "continue") -> CallInstructions:
        return CallInstructions(
            call_id=call_id,
            dialogue_status=status,
            speech=self._speech(text),
            gather=self._gather(),
        )

    def outcome_to_instructions(self, call_id: str, outcome: TurnOutcome) -> CallInstructions:
        """Convert a dialogue outcome into call instructions."""
        if outcome.ends_call:
            return CallInstructions(
                call_id=call_id,
                dialogue_status="complete",
                speech=self._speech(outcome.spoken_prompt),
                should_hangup=True,
            )
        if isinstance(outcome, Failed):
            return self._listen(call_id, outcome.spoken_prompt, status="failed")
        return self._listen(call_id, outcome.spoken_prompt)

    async def handle_inbound_call(self, context: CallContext) -> CallInstructions:
        """
        Handle a newly answered call: start the session, greet, and listen.

        A storage failure still greets the caller; the first turn creates the
        session if it is missing.

        Args:
            context: Call context with caller information

        Returns:
            CallInstructions with greeting and speech gather
        """
        set_call_context(context.call_id, context.caller_number)

        logger.info(
            f"📞 Inbound call: {context.call_id} from {context.caller_number} "
            f"to {context.recipient_number}"
        )
        logger.debug(f"Call context: {context.to_dict()}")

        try:
            await self.dialogue.start_session(context.call_id, context.caller_number)
        except StorageUnavailable as e:
            logger.error(f"Could not start session for {context.call_id}: {e}")

        return self._listen(context.call_id, self.settings.greeting_message)

    async def handle_speech(self, context: CallContext, speech_result: str) -> CallInstructions:
        """
        Handle one gathered utterance.

        Args:
            context: Call context with caller information
            speech_result: Twilio SpeechResult (may be empty)

        Returns:
            CallInstructions to continue listening or to hang up
        """
        set_call_context(context.call_id, context.caller_number)

        try:
            outcome = await self.dialogue.handle_turn(
                context.call_id,
                context.caller_number,
                speech_result or "",
            )
        except Exception as e:
            logger.exception(f"Error processing call {context.call_id}: {e}")
            outcome = Failed(FALLBACK_PROMPT)

        instructions = self.outcome_to_instructions(context.call_id, outcome)
        logger.info(f"Turn result for {context.call_id}: {instructions.dialogue_status}")
        return instructions
