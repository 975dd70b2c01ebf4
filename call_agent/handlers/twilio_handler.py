"""
Twilio webhook handler for voice calls.

Implements TwiML-based call control: /voice answers the call, /gather
receives each speech-to-text result.
"""

from fastapi import APIRouter, Depends, Request, HTTPException, Form
from fastapi.responses import Response
from twilio.twiml.voice_response import VoiceResponse
from twilio.request_validator import RequestValidator

from call_agent.config import get_settings
from call_agent.models.call_context import CallContext
from call_agent.models.call_instructions import CallInstructions
from call_agent.services.call_controller import CallController
from call_agent.services.dialogue_controller import FALLBACK_PROMPT
from call_agent.utils.logger import get_logger, set_call_context

logger = get_logger(__name__)
router = APIRouter(tags=["twilio"])


def get_call_controller(request: Request) -> CallController:
    """Call controller built during application startup."""
    controller = getattr(request.app.state, "call_controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return controller


def _convert_to_twiml(instructions: CallInstructions) -> VoiceResponse:
    """
    Convert protocol-agnostic CallInstructions to Twilio TwiML.

    Args:
        instructions: Call instructions from business logic

    Returns:
        TwiML VoiceResponse object
    """
    response = VoiceResponse()

    if instructions.speech:
        response.say(
            instructions.speech.text,
            voice=instructions.speech.voice,
            language=instructions.speech.language
        )

    if instructions.gather:
        response.gather(
            input=instructions.gather.input,
            timeout=instructions.gather.timeout_seconds,
            action=instructions.gather.action_url,
            method=instructions.gather.method
        )

    if instructions.should_hangup:
        response.hangup()

    return response


def _twiml(response: VoiceResponse) -> Response:
    return Response(content=str(response), media_type="application/xml")


def _fallback_twiml() -> VoiceResponse:
    """Apologize and keep listening."""
    settings = get_settings()
    response = VoiceResponse()
    response.say(FALLBACK_PROMPT, voice=settings.say_voice, language=settings.say_language)
    response.gather(input="speech", timeout=settings.gather_timeout, action="/gather", method="POST")
    return response


async def validate_twilio_signature(request: Request) -> bool:
    """
    Validate Twilio webhook signature using X-Twilio-Signature header.

    Args:
        request: FastAPI request object

    Returns:
        True if signature is valid or validation is skipped

    Raises:
        HTTPException: If signature validation fails
    """
    settings = get_settings()

    if settings.skip_webhook_signature_validation:
        logger.warning("⚠️  Skipping Twilio signature validation (testing mode)")
        return True

    signature = request.headers.get("X-Twilio-Signature", "")
    if not signature:
        logger.error("Missing X-Twilio-Signature header")
        raise HTTPException(status_code=401, detail="Missing signature header")

    validator = RequestValidator(settings.twilio_auth_token)
    url = str(request.url)

    form_data = await request.form()
    params = {key: value for key, value in form_data.items()}

    if not validator.validate(url, params, signature):
        logger.error("❌ Invalid Twilio signature")
        raise HTTPException(status_code=403, detail="Invalid signature")

    return True


@router.post("/voice")
async def handle_voice(
    request: Request,
    CallSid: str = Form(...),
    From: str = Form(""),
    To: str = Form(""),
    CallStatus: str = Form(None),
    controller: CallController = Depends(get_call_controller),
):
    """
    Handle an inbound call from Twilio.

    Returns TwiML that greets the caller and gathers the first utterance.
    """
    await validate_twilio_signature(request)
    set_call_context(CallSid, From)

    try:
        context = CallContext.from_webhook(CallSid, From, To, CallStatus)
        instructions = await controller.handle_inbound_call(context)
        return _twiml(_convert_to_twiml(instructions))

    except Exception as e:
        logger.exception(f"Error handling inbound call: {e}")
        return _twiml(_fallback_twiml())


@router.post("/gather")
async def handle_gather(
    request: Request,
    CallSid: str = Form(...),
    From: str = Form(""),
    To: str = Form(""),
    SpeechResult: str = Form(""),
    controller: CallController = Depends(get_call_controller),
):
    """
    Handle a speech result gathered by Twilio.

    Returns TwiML that either continues the dialogue or closes the call.
    """
    await validate_twilio_signature(request)
    set_call_context(CallSid, From)

    logger.info(f"🎙️  Speech for {CallSid}: {SpeechResult!r}")

    try:
        context = CallContext.from_webhook(CallSid, From, To)
        instructions = await controller.handle_speech(context, SpeechResult)
        return _twiml(_convert_to_twiml(instructions))

    except Exception as e:
        logger.exception(f"Error processing speech: {e}")
        return _twiml(_fallback_twiml())
