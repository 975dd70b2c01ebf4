"""
OpenAI Chat Completions client for generating the assistant's next utterance.
"""

import asyncio
from typing import Any, List, Optional, Tuple

import httpx
from httpx import AsyncClient, Response

from call_agent.config import get_settings
from call_agent.models.conversation import Role, Turn
from call_agent.utils.exceptions import GenerationUnavailable
from call_agent.utils.logger import get_logger

logger = get_logger(__name__)


class GenerationClient:
    """Client for the language generation service."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize generation client.

        Args:
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.settings = get_settings()
        self.base_url = self.settings.openai_api_base
        self.api_key = self.settings.openai_api_key
        self.model = self.settings.openai_model
        self.max_retries = self.settings.generation_max_retries
        self.retry_delay = 0.5  # seconds
        self.transport = transport

        self.client: Optional[AsyncClient] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if not self.client:
            self.client = AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.settings.generation_timeout),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json"
                },
                transport=self.transport,
            )
            logger.info("Generation client initialized")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Generation client closed")

    async def _make_request(self, method: str, endpoint: str, **kwargs) -> Response:
        """
        Make HTTP request with retry logic.

        Server errors and transport failures are retried with exponential
        backoff; client errors (4xx) are not.

        Raises:
            GenerationUnavailable: If request fails after retries
        """
        if not self.client:
            await self.connect()

        attempts = self.max_retries + 1

        for attempt in range(attempts):
            try:
                response = await self.client.request(method, endpoint, **kwargs)
            except httpx.RequestError as e:
                if attempt < attempts - 1:
                    logger.warning(f"Generation request error (attempt {attempt + 1}/{attempts}): {e}")
                    await asyncio.sleep(self.retry_delay * (2 ** attempt))
                    continue
                raise GenerationUnavailable(f"Generation request failed after {attempts} attempts: {e}")

            if response.status_code < 400:
                return response

            error_data, error_msg = self._error_details(response)

            if 400 <= response.status_code < 500:
                raise GenerationUnavailable(
                    f"Generation API error: {error_msg}",
                    status_code=response.status_code,
                    response_data=error_data
                )

            if attempt < attempts - 1:
                logger.warning(
                    f"Generation request failed (attempt {attempt + 1}/{attempts}): "
                    f"{response.status_code} - {error_msg}"
                )
                await asyncio.sleep(self.retry_delay * (2 ** attempt))
                continue

            raise GenerationUnavailable(
                f"Generation API error after {attempts} attempts: {error_msg}",
                status_code=response.status_code,
                response_data=error_data
            )

        raise GenerationUnavailable("Generation request failed after all retries")

    @staticmethod
    def _error_details(response: Response) -> Tuple[Any, str]:
        """
        Pull the error body and message out of a failed response.

        OpenAI nests the message under {"error": {"message": ...}}; proxies
        in front of it may answer with any JSON shape or with plain text.
        """
        try:
            error_data = response.json()
        except ValueError:
            return {}, response.text

        error = error_data.get("error") if isinstance(error_data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return error_data, str(error["message"])
        if isinstance(error, str) and error:
            return error_data, error
        return error_data, response.text

    @staticmethod
    def build_messages(system_prompt: str, history: List[Turn], latest_utterance: str) -> List[dict]:
        """
        Build the chat message list.

        The latest utterance is appended only when the history window does not
        already end with it.
        """
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend(turn.to_message() for turn in history)

        already_sent = bool(history) and history[-1].role == Role.USER and history[-1].content == latest_utterance
        if latest_utterance and not already_sent:
            messages.append({"role": Role.USER.value, "content": latest_utterance})
        return messages

    async def generate(self, system_prompt: str, history: List[Turn], latest_utterance: str) -> str:
        """
        Generate the assistant's next utterance.

        Args:
            system_prompt: Assistant instructions
            history: Recent dialogue turns (already truncated by the caller)
            latest_utterance: What the caller just said

        Returns:
            Generated text

        Raises:
            GenerationUnavailable: If the service fails or returns no text
        """
        payload = {
            "model": self.model,
            "messages": self.build_messages(system_prompt, history, latest_utterance),
            "max_tokens": self.settings.openai_max_tokens,
            "temperature": self.settings.openai_temperature,
        }

        response = await self._make_request("POST", "/chat/completions", json=payload)

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationUnavailable(f"Malformed generation response: {e}")

        if not isinstance(content, str) or not content.strip():
            raise GenerationUnavailable("Generation returned empty content")

        return content.strip()
