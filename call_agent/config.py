"""
Configuration management for the Steak Call Agent service.

Uses Pydantic BaseSettings for type-safe configuration loading from environment variables.
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from call_agent.utils.exceptions import ConfigurationException
from call_agent.utils.logger import get_logger

DEFAULT_SYSTEM_PROMPT = """You are a friendly phone assistant collecting customer information.
Your job is to:
1. Greet the caller warmly
2. Collect their name
3. Ask for their favorite color
4. Ask how they like their steak cooked (rare, medium rare, medium, medium well, well done)

Keep responses brief and conversational. When you have all three pieces of information,
thank them and let them know they'll receive a text with cooking instructions.

Always respond in a natural, friendly tone as if speaking on the phone."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Twilio Configuration
    twilio_account_sid: str = Field(default="", description="Twilio account SID")
    twilio_auth_token: str = Field(default="", description="Twilio auth token (also used for signature validation)")
    twilio_phone_number: str = Field(default="", description="Twilio number the follow-up SMS is sent from")
    skip_webhook_signature_validation: bool = Field(
        default=False,
        description="Skip X-Twilio-Signature validation (local testing only)"
    )

    # Speech Configuration
    say_voice: str = Field(default="alice", description="TwiML <Say> voice")
    say_language: str = Field(default="en-US", description="TwiML <Say> language")
    gather_timeout: int = Field(default=10, description="Seconds Twilio listens for speech")
    greeting_message: str = Field(
        default=(
            "Hello! I'm calling to collect some quick information for our steak "
            "cooking service. This will just take a minute."
        ),
        description="Greeting spoken when the call is answered"
    )

    # OpenAI Configuration
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_api_base: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    openai_model: str = Field(default="gpt-4", description="Chat completion model")
    openai_max_tokens: int = Field(default=150, description="Max tokens per generated reply")
    openai_temperature: float = Field(default=0.7, description="Sampling temperature")
    generation_timeout: float = Field(default=15.0, description="Generation request timeout in seconds")
    generation_max_retries: int = Field(default=2, description="Retries for transient generation failures")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT, description="Assistant system prompt")
    context_window_size: int = Field(default=6, description="History entries sent to the generator")

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./customer_data.db",
        description="SQLAlchemy async connection string"
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment: development or production")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is either 'development' or 'production'."""
        if v not in ["development", "production"]:
            raise ValueError("environment must be either 'development' or 'production'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("context_window_size")
    @classmethod
    def validate_context_window(cls, v: int) -> int:
        if v < 1:
            raise ValueError("context_window_size must be at least 1")
        return v

    @property
    def sms_enabled(self) -> bool:
        """True when Twilio credentials for outbound SMS are present."""
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_phone_number)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns:
        Settings instance

    Raises:
        ConfigurationException: If configuration is invalid
    """
    global _settings

    if _settings is None:
        try:
            _settings = Settings()
        except Exception as e:
            raise ConfigurationException(f"Configuration error: {str(e)}")

        logger = get_logger(__name__)
        logger.info("Configuration loaded successfully")
        logger.info(f"Environment: {_settings.environment}")
        logger.info(f"Port: {_settings.port}")
        logger.info(f"Log Level: {_settings.log_level}")
        logger.info(f"Generation model: {_settings.openai_model}")
        if not _settings.sms_enabled:
            logger.warning("Twilio SMS credentials not set, follow-up texts are disabled")

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        New Settings instance
    """
    global _settings
    _settings = None
    return get_settings()
