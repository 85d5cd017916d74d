"""Broker client interfaces following Black Box Design principles."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class BrokerError(Exception):
    """Raised by any broker client handle when the underlying library fails."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AckMode(str, Enum):
    """Acknowledgement modes a session can be opened with."""

    AUTO = "auto"


@dataclass
class Destination:
    """A named queue on the broker."""
    name: str


@dataclass
class Message:
    """A message of unknown kind, carried as raw bytes."""
    body: bytes = b""
    content_type: Optional[str] = None


@dataclass
class TextMessage(Message):
    """A message whose payload is text."""
    text: str = ""


class Producer(Protocol):
    """Sends messages to the destination it was created for."""

    def send(self, message: Message) -> None:
        ...

    def close(self) -> None:
        ...


class Consumer(Protocol):
    """Receives messages from the destination it was created for."""

    def receive(self, timeout_ms: int) -> Optional[Message]:
        """
        Block until a message arrives or the timeout elapses.

        Returns:
            The next message, or None when nothing arrived in time
        """
        ...

    def close(self) -> None:
        ...


class Session(Protocol):
    """Scope for producing and consuming messages."""

    def create_queue(self, name: str) -> Destination:
        ...

    def create_producer(self, destination: Destination) -> Producer:
        ...

    def create_consumer(self, destination: Destination) -> Consumer:
        ...

    def create_text_message(self, text: str) -> TextMessage:
        ...

    def close(self) -> None:
        ...


class Connection(Protocol):
    """An open connection to a broker."""

    def start(self) -> None:
        ...

    def create_session(self, transacted: bool = False, ack_mode: AckMode = AckMode.AUTO) -> Session:
        ...

    def close(self) -> None:
        ...


class ConnectionFactory(Protocol):
    """Protocol for broker client libraries - allows swappable implementations."""

    def create_connection(
        self,
        broker_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Connection:
        """
        Open a connection to the broker.

        Args:
            broker_url: Broker URL
            username: Optional user name; anonymous when omitted
            password: Optional password

        Raises:
            BrokerError: If the broker cannot be reached or rejects the login
        """
        ...
