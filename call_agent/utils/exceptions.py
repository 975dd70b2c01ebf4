"""
Custom exception classes for the Steak Call Agent service.
"""


class CallAgentException(Exception):
    """Base exception for all call agent errors."""
    pass


class StorageUnavailable(CallAgentException):
    """Exception raised when the persistence layer cannot be reached."""
    pass


class SessionNotFound(CallAgentException):
    """Exception raised when a call session is looked up before it was created."""

    def __init__(self, call_id: str):
        """
        Initialize session-not-found exception.

        Args:
            call_id: Call identifier that has no session
        """
        super().__init__(f"No session found for call {call_id}")
        self.call_id = call_id


class GenerationUnavailable(CallAgentException):
    """Exception raised when the language generation service fails."""

    def __init__(self, message: str, status_code: int = None, response_data: dict = None):
        """
        Initialize generation exception.

        Args:
            message: Error message
            status_code: HTTP status code from API
            response_data: API response data
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class NotificationFailed(CallAgentException):
    """Exception raised when an outbound SMS cannot be delivered."""
    pass


class ConfigurationException(CallAgentException):
    """Exception raised for configuration errors."""
    pass
