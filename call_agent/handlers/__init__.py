"""Webhook handlers module."""

from .twilio_handler import router as twilio_router

__all__ = ["twilio_router"]
