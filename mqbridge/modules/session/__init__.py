"""
Session Module - Black Box Interface

Purpose: Guard the single shared broker session
Interface: connect(), disconnect(), send(), receive(), is_connected(), shutdown()
Hidden: Broker handles, lazy producer/consumer creation, locking

Every operation is serialized; callers never see a half-open session.
"""

from .errors import (
    AlreadyConnected,
    BrokerOperationError,
    BrokerUnavailable,
    NotConnected,
    ReceiveFailed,
    SendFailed,
    SessionError,
    SessionStateError,
)
from .session import NON_TEXT_PLACEHOLDER, SessionManager

__all__ = [
    "AlreadyConnected",
    "BrokerOperationError",
    "BrokerUnavailable",
    "NON_TEXT_PLACEHOLDER",
    "NotConnected",
    "ReceiveFailed",
    "SendFailed",
    "SessionError",
    "SessionManager",
    "SessionStateError",
]
