"""
Broker Module - Black Box Interface

Purpose: Talk to the message broker
Interface: ConnectionFactory.create_connection() and the handles it returns
Hidden: Wire protocol, channel management, delivery buffering

Replaceable with any broker client exposing the same connection/session handles.
"""

from .interfaces import (
    AckMode,
    BrokerError,
    Connection,
    ConnectionFactory,
    Consumer,
    Destination,
    Message,
    Producer,
    Session,
    TextMessage,
)
from .pika_client import PikaConnectionFactory

__all__ = [
    "AckMode",
    "BrokerError",
    "Connection",
    "ConnectionFactory",
    "Consumer",
    "Destination",
    "Message",
    "PikaConnectionFactory",
    "Producer",
    "Session",
    "TextMessage",
]
