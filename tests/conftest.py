"""
Shared pytest fixtures for MQBridge tests.

This module provides:
- FakeBroker: an in-memory broker implementing the broker client interfaces
- Session manager and FastAPI test client fixtures built on top of it
"""

import os
import sys
import threading
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Deque, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mqbridge.config.provider import EnvConfigProvider
from mqbridge.modules.broker import AckMode, BrokerError, Destination, Message, TextMessage
from mqbridge.modules.session import SessionManager


# =============================================================================
# In-memory broker
# =============================================================================


class FakeBroker:
    """
    In-memory stand-in for a message broker.

    Failures are injected by setting the matching ``fail_*`` attribute to an
    error message. Every handle call goes through ``_call`` so tests can check
    that no two broker calls ever overlap.

    Usage:
        def test_send_failure(broker, manager):
            manager.connect("amqp://localhost")
            broker.fail_send = "channel closed"
            with pytest.raises(SendFailed):
                manager.send("q1", "hello")
    """

    def __init__(self, call_delay: float = 0.0):
        self.queues: Dict[str, Deque[Message]] = defaultdict(deque)
        self.connect_calls: List[tuple] = []
        self.closed: List[str] = []
        self.receive_timeouts: List[int] = []
        self.producers: List["FakeProducer"] = []
        self.consumers: List["FakeConsumer"] = []
        self.call_delay = call_delay

        self.fail_connect: Optional[str] = None
        self.fail_start: Optional[str] = None
        self.fail_send: Optional[str] = None
        self.fail_receive: Optional[str] = None
        self.fail_close: Optional[str] = None

        self._active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    @contextmanager
    def _call(self, failure: Optional[str] = None):
        with self._counter_lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            if self.call_delay:
                time.sleep(self.call_delay)
            if failure:
                raise BrokerError(failure)
            yield
        finally:
            with self._counter_lock:
                self._active -= 1

    def put(self, queue_name: str, message: Message) -> None:
        self.queues[queue_name].append(message)

    def texts(self, queue_name: str) -> List[str]:
        return [m.text for m in self.queues[queue_name] if isinstance(m, TextMessage)]


class FakeProducer:
    def __init__(self, broker: FakeBroker, destination: Destination):
        self.broker = broker
        self.destination = destination

    def send(self, message: Message) -> None:
        with self.broker._call(self.broker.fail_send):
            self.broker.put(self.destination.name, message)

    def close(self) -> None:
        self.broker.closed.append("producer")
        with self.broker._call(self.broker.fail_close):
            pass


class FakeConsumer:
    def __init__(self, broker: FakeBroker, destination: Destination):
        self.broker = broker
        self.destination = destination

    def receive(self, timeout_ms: int) -> Optional[Message]:
        self.broker.receive_timeouts.append(timeout_ms)
        with self.broker._call(self.broker.fail_receive):
            pending = self.broker.queues[self.destination.name]
            return pending.popleft() if pending else None

    def close(self) -> None:
        self.broker.closed.append("consumer")
        with self.broker._call(self.broker.fail_close):
            pass


class FakeSession:
    def __init__(self, broker: FakeBroker):
        self.broker = broker

    def create_queue(self, name: str) -> Destination:
        return Destination(name=name)

    def create_producer(self, destination: Destination) -> FakeProducer:
        producer = FakeProducer(self.broker, destination)
        self.broker.producers.append(producer)
        return producer

    def create_consumer(self, destination: Destination) -> FakeConsumer:
        consumer = FakeConsumer(self.broker, destination)
        self.broker.consumers.append(consumer)
        return consumer

    def create_text_message(self, text: str) -> TextMessage:
        return TextMessage(content_type="text/plain", text=text)

    def close(self) -> None:
        self.broker.closed.append("session")
        with self.broker._call(self.broker.fail_close):
            pass


class FakeConnection:
    def __init__(self, broker: FakeBroker):
        self.broker = broker
        self.started = False
        self.session_args: Optional[tuple] = None

    def start(self) -> None:
        with self.broker._call(self.broker.fail_start):
            self.started = True

    def create_session(self, transacted: bool = False, ack_mode: AckMode = AckMode.AUTO) -> FakeSession:
        self.session_args = (transacted, ack_mode)
        return FakeSession(self.broker)

    def close(self) -> None:
        self.broker.closed.append("connection")
        with self.broker._call(self.broker.fail_close):
            pass


class FakeConnectionFactory:
    def __init__(self, broker: FakeBroker):
        self.broker = broker
        self.connections: List[FakeConnection] = []

    def create_connection(self, broker_url: str, *credentials) -> FakeConnection:
        self.broker.connect_calls.append((broker_url, *credentials))
        with self.broker._call(self.broker.fail_connect):
            connection = FakeConnection(self.broker)
        self.connections.append(connection)
        return connection


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def broker():
    """Create an empty in-memory broker."""
    return FakeBroker()


@pytest.fixture
def connection_factory(broker):
    return FakeConnectionFactory(broker)


@pytest.fixture
def manager(connection_factory):
    """Create a SessionManager over the in-memory broker."""
    return SessionManager(connection_factory)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove MQBridge settings from the environment."""
    for name in (
        "API_HOST",
        "API_PORT",
        "API_DEBUG",
        "API_PREFIX",
        "LOG_LEVEL",
        "BROKER_RECEIVE_TIMEOUT_MS",
        "BROKER_DEFAULT_QUEUE",
        "BROKER_HEARTBEAT",
        "BROKER_BLOCKED_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def client(manager, clean_env):
    """FastAPI test client serving the in-memory session manager."""
    from mqbridge.main import create_app

    app = create_app(session_manager=manager, provider=EnvConfigProvider())
    with TestClient(app) as test_client:
        yield test_client
