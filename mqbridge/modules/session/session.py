import logging
import threading
from typing import Optional

from ..broker import AckMode, BrokerError, ConnectionFactory, TextMessage
from .errors import (
    AlreadyConnected,
    BrokerUnavailable,
    NotConnected,
    ReceiveFailed,
    SendFailed,
)

logger = logging.getLogger(__name__)

NON_TEXT_PLACEHOLDER = "[Non-text message received]"
DEFAULT_RECEIVE_TIMEOUT_MS = 1000


def _close_quietly(handle, name: str) -> None:
    try:
        handle.close()
    except Exception as e:
        logger.debug(f"Ignoring error while closing {name}: {e}")


class SessionManager:
    def __init__(
        self,
        connection_factory: ConnectionFactory,
        receive_timeout_ms: int = DEFAULT_RECEIVE_TIMEOUT_MS,
    ):
        """
        Initialize session manager.

        Args:
            connection_factory: Broker client used to open connections
            receive_timeout_ms: How long receive() waits for a message

        Every operation except is_connected() holds a single lock for its
        whole duration, so broker calls never overlap. A slow connect or an
        empty receive stalls all other callers.
        """
        self.connection_factory = connection_factory
        self.receive_timeout_ms = receive_timeout_ms

        self._lock = threading.Lock()
        self._connected = False
        self._connection = None
        self._session = None
        self._producer = None
        self._consumer = None

    def connect(
        self,
        broker_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Open a connection and an auto-acknowledging session.

        Args:
            broker_url: Broker URL
            username: User name; an empty or missing name connects anonymously
            password: Password, only used together with a user name

        Raises:
            AlreadyConnected: If a session is already open
            BrokerUnavailable: If the broker could not be reached
        """
        with self._lock:
            if self._connected:
                raise AlreadyConnected("Already connected")

            connection = None
            try:
                if username:
                    connection = self.connection_factory.create_connection(
                        broker_url, username, password
                    )
                else:
                    connection = self.connection_factory.create_connection(broker_url)
                connection.start()
                session = connection.create_session(transacted=False, ack_mode=AckMode.AUTO)
            except BrokerError as e:
                logger.warning(f"Connection to {broker_url} failed: {e.message}")
                if connection is not None:
                    _close_quietly(connection, "connection")
                raise BrokerUnavailable(e.message) from e

            self._connection = connection
            self._session = session
            self._connected = True
            logger.info(f"Connected to broker at {broker_url}")

    def disconnect(self) -> None:
        """
        Close every open handle and forget the session.

        Close failures are ignored; the manager always ends up disconnected.

        Raises:
            NotConnected: If no session is open
        """
        with self._lock:
            if not self._connected:
                raise NotConnected("Not connected")

            try:
                for name in ("producer", "consumer", "session", "connection"):
                    handle = getattr(self, f"_{name}")
                    if handle is not None:
                        _close_quietly(handle, name)
            finally:
                self._producer = None
                self._consumer = None
                self._session = None
                self._connection = None
                self._connected = False

            logger.info("Disconnected from broker")

    def send(self, queue_name: str, message_text: str) -> None:
        """
        Send a text message.

        The producer is created on first use and stays bound to that first
        queue; later calls reuse it whatever queue_name they pass.

        Raises:
            NotConnected: If no session is open
            SendFailed: If the broker rejected the message
        """
        with self._lock:
            self._ensure_connected()

            try:
                destination = self._session.create_queue(queue_name)
                if self._producer is None:
                    self._producer = self._session.create_producer(destination)

                message = self._session.create_text_message(message_text)
                self._producer.send(message)
            except BrokerError as e:
                logger.warning(f"Send to {queue_name} failed: {e.message}")
                raise SendFailed(e.message) from e

    def receive(self, queue_name: str) -> Optional[str]:
        """
        Wait up to the receive timeout for one message.

        Like send(), the consumer is bound to the first queue it was used with.

        Returns:
            The message text, a placeholder for non-text messages,
            or None if nothing arrived in time

        Raises:
            NotConnected: If no session is open
            ReceiveFailed: If the broker failed during the receive
        """
        with self._lock:
            self._ensure_connected()

            try:
                destination = self._session.create_queue(queue_name)
                if self._consumer is None:
                    self._consumer = self._session.create_consumer(destination)

                message = self._consumer.receive(self.receive_timeout_ms)
            except BrokerError as e:
                logger.warning(f"Receive from {queue_name} failed: {e.message}")
                raise ReceiveFailed(e.message) from e

        if message is None:
            return None
        if isinstance(message, TextMessage):
            return message.text
        return NON_TEXT_PLACEHOLDER

    def is_connected(self) -> bool:
        return self._connected

    def shutdown(self) -> None:
        """Disconnect on application shutdown, never raising."""
        if not self._connected:
            return
        try:
            self.disconnect()
        except Exception as e:
            logger.warning(f"Error during shutdown disconnect: {e}")

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise NotConnected("Not connected")
