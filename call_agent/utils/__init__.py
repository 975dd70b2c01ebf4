"""Utilities module."""

from .logger import setup_logger, get_logger, set_call_context, call_context

__all__ = ["setup_logger", "get_logger", "set_call_context", "call_context"]
