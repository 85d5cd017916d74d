"""
MQBridge - HTTP facade over a message broker session

Exposes connect, disconnect, send, receive and status over HTTP
for a single shared broker session.

Architecture:
- Each module is self-contained with clear interfaces
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- broker: Broker client adapter (AMQP via pika)
- session: Connection/session lifecycle and locking
- api: Request and response models
"""

__version__ = "1.0.0"
