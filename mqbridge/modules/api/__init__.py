"""
API Module - Black Box Interface

Purpose: Request and response shapes of the HTTP facade
Interface: Pydantic models
Hidden: Field aliases, validation rules

The API only orchestrates - all broker logic lives in the session module.
"""

from .models import (
    ConnectionStatus,
    ConnectRequest,
    ErrorResponse,
    MessageResponse,
    SendRequest,
    StatusResponse,
)

__all__ = [
    "ConnectRequest",
    "SendRequest",
    "StatusResponse",
    "MessageResponse",
    "ErrorResponse",
    "ConnectionStatus",
]
