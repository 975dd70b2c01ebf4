"""
Dialogue turn controller.

Runs one caller utterance through the conversation: load the session, ask
the generator for the next line, re-extract slots from the whole call, save,
and decide whether the call is complete. Completion writes the customer
record and sends the follow-up SMS.
"""

from typing import Optional

from call_agent.config import get_settings
from call_agent.models.conversation import CallSession, CustomerRecord, Role, Turn
from call_agent.models.turn_outcome import TurnOutcome, Continue, Complete, Failed
from call_agent.services import slot_extractor
from call_agent.services.database_service import DatabaseService
from call_agent.services.generation_client import GenerationClient
from call_agent.services.notification_service import NotificationService
from call_agent.services.session_store import SessionStore
from call_agent.utils.exceptions import GenerationUnavailable, SessionNotFound, StorageUnavailable
from call_agent.utils.logger import get_logger, set_call_context

logger = get_logger(__name__)

FALLBACK_PROMPT = "I'm sorry, I'm having trouble processing that. Let me try again."

CLOSING_TEMPLATE = (
    "Perfect! Thanks {name}. I've got your information and you'll receive a text "
    "with your personalized steak cooking instructions shortly. Have a great day!"
)


class DialogueTurnController:
    """
    Orchestrates one request/response cycle of a call.

    Collaborators are injected; the controller holds no per-call state of its
    own, so one instance serves every concurrent call.
    """

    def __init__(
        self,
        session_store: SessionStore,
        database_service: DatabaseService,
        generation_client: GenerationClient,
        notification_service: NotificationService,
        system_prompt: Optional[str] = None,
        context_window_size: Optional[int] = None,
    ):
        """
        Initialize dialogue turn controller.

        Args:
            session_store: Per-call session persistence
            database_service: Storage for customer records
            generation_client: Language generation collaborator
            notification_service: Outbound SMS collaborator
            system_prompt: Override for the configured system prompt
            context_window_size: Override for the number of history entries sent to the generator
        """
        settings = get_settings()
        self.session_store = session_store
        self.db = database_service
        self.generation_client = generation_client
        self.notification_service = notification_service
        self.system_prompt = system_prompt or settings.system_prompt
        self.context_window_size = context_window_size or settings.context_window_size

    async def start_session(self, call_id: str, caller_address: str) -> CallSession:
        """
        Create (or fetch) the session for a newly answered call.

        Raises:
            StorageUnavailable: If the database cannot be reached
        """
        set_call_context(call_id, caller_address)
        session = await self.session_store.get_or_create(call_id, caller_address)
        logger.info(f"Session ready for {call_id} ({len(session.history)} turns so far)")
        return session

    async def _load_session(self, call_id: str, caller_address: str) -> CallSession:
        try:
            return await self.session_store.get(call_id)
        except SessionNotFound:
            logger.warning(f"No session for {call_id} yet, creating it now")
            return await self.session_store.get_or_create(call_id, caller_address)

    @staticmethod
    def closing_prompt(record: CustomerRecord) -> str:
        return CLOSING_TEMPLATE.format(name=record.name)

    async def handle_turn(self, call_id: str, caller_address: str, user_utterance: str) -> TurnOutcome:
        """
        Process one caller utterance.

        Args:
            call_id: Twilio call SID
            caller_address: Caller phone number
            user_utterance: Speech-to-text result for this turn

        Returns:
            Continue, Complete or Failed. Never raises for storage or
            generation failures.
        """
        set_call_context(call_id, caller_address)

        try:
            session = await self._load_session(call_id, caller_address)
            caller_address = session.caller_address or caller_address

            if session.is_completed:
                # Twilio retried the final webhook; the call is already done
                record = session.partial_record.to_customer_record(caller_address)
                logger.info(f"Call {call_id} already completed, repeating closing prompt")
                return Complete(self.closing_prompt(record), record=record)

            history = list(session.history)
            history.append(Turn(role=Role.USER, content=user_utterance))

            window = history[-self.context_window_size:]
            generated = await self.generation_client.generate(self.system_prompt, window, user_utterance)
            history.append(Turn(role=Role.ASSISTANT, content=generated))

            session = session.model_copy(update={"history": history})
            extracted = slot_extractor.extract(session.transcript())
            record = session.partial_record.merge(extracted)

            await self.session_store.update(call_id, history, record)

        except GenerationUnavailable as e:
            logger.error(f"Generation failed for {call_id}: {e}")
            return Failed(FALLBACK_PROMPT)
        except (StorageUnavailable, SessionNotFound) as e:
            logger.error(f"Storage failed for {call_id}: {e}")
            return Failed(FALLBACK_PROMPT)

        logger.info(f"Turn {len(history) // 2} for {call_id}: slots {record.filled_slots}")

        if not record.is_complete:
            return Continue(generated)

        return await self._complete(call_id, record.to_customer_record(caller_address))

    async def _complete(self, call_id: str, customer: CustomerRecord) -> TurnOutcome:
        """Persist the customer record, mark the session, send the SMS."""
        try:
            await self.db.upsert_customer(
                phone_number=customer.caller_address,
                name=customer.name,
                favorite_color=customer.favorite_color,
                steak_preference=customer.steak_preference.value,
            )
            await self.session_store.mark_completed(call_id)
        except (StorageUnavailable, SessionNotFound) as e:
            logger.error(f"Failed to save customer record for {call_id}: {e}")
            return Failed(FALLBACK_PROMPT)

        logger.info(f"✅ All information collected for {call_id}")

        try:
            delivered = await self.notification_service.send_steak_instructions(customer)
            if not delivered:
                logger.warning(f"Steak instructions not delivered to {customer.caller_address}")
        except Exception as e:
            logger.exception(f"Error sending steak instructions for {call_id}: {e}")

        return Complete(self.closing_prompt(customer), record=customer)
