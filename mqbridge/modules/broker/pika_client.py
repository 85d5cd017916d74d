"""AMQP broker client backed by pika's blocking adapter."""

from __future__ import annotations

import collections
import logging
import time
from contextlib import contextmanager
from typing import Deque, Iterator, Optional, Tuple

import pika
import pika.exceptions
from pika.adapters.blocking_connection import BlockingChannel

from .interfaces import AckMode, BrokerError, Destination, Message, TextMessage

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain"


@contextmanager
def _broker_errors() -> Iterator[None]:
    """Translate pika failures into BrokerError."""
    try:
        yield
    except pika.exceptions.AMQPError as e:
        raise BrokerError(str(e) or type(e).__name__) from e


def _normalize_url(broker_url: str) -> str:
    """Accept tcp://host:port addresses as plain AMQP URLs."""
    if broker_url.lower().startswith("tcp://"):
        return "amqp://" + broker_url[len("tcp://"):]
    return broker_url


def _to_message(properties: Optional[pika.BasicProperties], body: bytes) -> Message:
    content_type = properties.content_type if properties else None
    encoding = (properties.content_encoding if properties else None) or "utf-8"

    if content_type is None or content_type.startswith("text/"):
        try:
            return TextMessage(body=body, content_type=content_type, text=body.decode(encoding))
        except (UnicodeDecodeError, LookupError):
            pass
    return Message(body=body, content_type=content_type)


class PikaProducer:
    def __init__(self, channel: BlockingChannel, destination: Destination):
        self._channel = channel
        self.destination = destination

    def send(self, message: Message) -> None:
        if isinstance(message, TextMessage):
            body = message.text.encode("utf-8")
            properties = pika.BasicProperties(
                content_type=message.content_type or TEXT_CONTENT_TYPE,
                content_encoding="utf-8",
            )
        else:
            body = message.body
            properties = pika.BasicProperties(content_type=message.content_type)

        with _broker_errors():
            self._channel.basic_publish(
                exchange="",
                routing_key=self.destination.name,
                body=body,
                properties=properties,
            )

    def close(self) -> None:
        # Publishing holds no broker-side state
        pass


class PikaConsumer:
    """
    Consumer that acknowledges each delivery when it is handed to the caller.

    Prefetch is limited to one message, so at most one delivery is buffered.
    Anything buffered but not yet received is returned to the queue on close.
    """

    def __init__(self, connection: pika.BlockingConnection, channel: BlockingChannel, destination: Destination):
        self._connection = connection
        self._channel = channel
        self.destination = destination
        self._pending: Deque[Tuple[int, Optional[pika.BasicProperties], bytes]] = collections.deque()

        with _broker_errors():
            channel.basic_qos(prefetch_count=1)
            self._consumer_tag = channel.basic_consume(
                queue=destination.name,
                on_message_callback=self._on_message,
                auto_ack=False,
            )

    def _on_message(self, _channel, method, properties, body: bytes) -> None:
        self._pending.append((method.delivery_tag, properties, body))

    def receive(self, timeout_ms: int) -> Optional[Message]:
        deadline = time.monotonic() + timeout_ms / 1000.0

        with _broker_errors():
            while not self._pending:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._connection.process_data_events(time_limit=remaining)

            delivery_tag, properties, body = self._pending.popleft()
            self._channel.basic_ack(delivery_tag=delivery_tag)

        return _to_message(properties, body)

    def close(self) -> None:
        with _broker_errors():
            if self._channel.is_open:
                self._channel.basic_cancel(self._consumer_tag)
                while self._pending:
                    delivery_tag, _properties, _body = self._pending.popleft()
                    self._channel.basic_nack(delivery_tag=delivery_tag, requeue=True)
        self._pending.clear()


class PikaSession:
    """A session is an AMQP channel."""

    def __init__(self, connection: pika.BlockingConnection, channel: BlockingChannel):
        self._connection = connection
        self._channel = channel

    def create_queue(self, name: str) -> Destination:
        with _broker_errors():
            self._channel.queue_declare(queue=name)
        return Destination(name=name)

    def create_producer(self, destination: Destination) -> PikaProducer:
        return PikaProducer(self._channel, destination)

    def create_consumer(self, destination: Destination) -> PikaConsumer:
        return PikaConsumer(self._connection, self._channel, destination)

    def create_text_message(self, text: str) -> TextMessage:
        return TextMessage(content_type=TEXT_CONTENT_TYPE, text=text)

    def close(self) -> None:
        with _broker_errors():
            if self._channel.is_open:
                self._channel.close()


class PikaConnection:
    def __init__(self, connection: pika.BlockingConnection):
        self._connection = connection

    def start(self) -> None:
        # The blocking adapter delivers as soon as it is open
        if not self._connection.is_open:
            raise BrokerError("Connection is closed")

    def create_session(self, transacted: bool = False, ack_mode: AckMode = AckMode.AUTO) -> PikaSession:
        if transacted:
            raise BrokerError("Transacted sessions are not supported")
        if ack_mode is not AckMode.AUTO:
            raise BrokerError(f"Unsupported acknowledge mode: {ack_mode}")

        with _broker_errors():
            channel = self._connection.channel()
        return PikaSession(self._connection, channel)

    def close(self) -> None:
        with _broker_errors():
            if self._connection.is_open:
                self._connection.close()


class PikaConnectionFactory:
    """
    Opens blocking AMQP connections.

    Broker URLs are AMQP URLs (amqp://host:port/vhost); tcp://host:port is
    accepted as an alias. Explicit credentials override any in the URL.

    Heartbeats default to off: a blocking connection only services them
    while a call is in progress, so an idle session would otherwise be
    dropped by the broker between requests.
    """

    def __init__(self, heartbeat: int = 0, blocked_connection_timeout: int = 300):
        self.heartbeat = heartbeat
        self.blocked_connection_timeout = blocked_connection_timeout

    def _parameters(
        self, broker_url: str, username: Optional[str], password: Optional[str]
    ) -> pika.URLParameters:
        if "://" not in broker_url:
            raise BrokerError(f"Invalid broker URL '{broker_url}': missing scheme")
        try:
            params = pika.URLParameters(_normalize_url(broker_url))
        except Exception as e:
            raise BrokerError(f"Invalid broker URL '{broker_url}': {e}") from e

        if username:
            params.credentials = pika.PlainCredentials(username, password or "")
        params.heartbeat = self.heartbeat
        params.blocked_connection_timeout = self.blocked_connection_timeout
        return params

    def create_connection(
        self,
        broker_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> PikaConnection:
        params = self._parameters(broker_url, username, password)
        logger.debug(f"Opening AMQP connection to {params.host}:{params.port}")

        with _broker_errors():
            connection = pika.BlockingConnection(params)
        return PikaConnection(connection)
