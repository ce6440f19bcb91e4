"""
Exception types surfaced by the expert services.
"""
from typing import Optional


class GostExpertError(Exception):
    """Base class for service errors shown to the UI."""
    pass


class ConfigurationError(GostExpertError):
    """Raised when a required property (the Gemini API key) is not configured."""
    pass


class ApiError(GostExpertError):
    """
    Raised when the Gemini API answers with a non-200 status, or with a 200
    envelope that carries no usable content.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        finish_reason: Optional[str] = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.finish_reason = finish_reason
