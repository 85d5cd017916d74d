#!/usr/bin/env python3
"""
MQBridge - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the session manager over the broker client
3. Serves the HTTP facade

All broker logic is in the modules, following black box principles.
"""

import logging
import logging.config as log_config
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response
from fastapi.responses import JSONResponse

from mqbridge import __version__
from mqbridge.config.provider import ConfigProvider, EnvConfigProvider
from mqbridge.logging_config import get_logging_config
from mqbridge.modules.api import (
    ConnectionStatus,
    ConnectRequest,
    ErrorResponse,
    MessageResponse,
    SendRequest,
    StatusResponse,
)
from mqbridge.modules.broker import PikaConnectionFactory
from mqbridge.modules.session import (
    AlreadyConnected,
    BrokerUnavailable,
    NotConnected,
    ReceiveFailed,
    SendFailed,
    SessionManager,
)

# Configuration provider (centralized config access)
config_provider: ConfigProvider = EnvConfigProvider()

log_config.dictConfig(get_logging_config(config_provider.get_api_config().log_level))
logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid in the current connection state"},
    503: {"model": ErrorResponse, "description": "Broker failure"},
}

router = APIRouter()


def build_session_manager(provider: ConfigProvider) -> SessionManager:
    """Create the session manager over the pika broker client."""
    broker_config = provider.get_broker_config()
    factory = PikaConnectionFactory(
        heartbeat=broker_config.heartbeat,
        blocked_connection_timeout=broker_config.blocked_connection_timeout,
    )
    return SessionManager(factory, receive_timeout_ms=broker_config.receive_timeout_ms)


def get_session_manager(request: Request) -> SessionManager:
    """Resolve the session manager injected into the application."""
    return request.app.state.session_manager


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# Broker Endpoints


@router.post("/connect", response_model=StatusResponse, responses=ERROR_RESPONSES)
def connect(request: ConnectRequest, manager: SessionManager = Depends(get_session_manager)):
    """
    Connect to a broker.

    Returns:
        200: Connected
        400: Already connected
        503: Broker unreachable or rejected the credentials
    """
    try:
        manager.connect(request.broker_url, request.username, request.password)
    except AlreadyConnected as e:
        return _error(400, e.message)
    except BrokerUnavailable as e:
        return _error(503, f"Connection failed: {e.message}")

    return StatusResponse(status=ConnectionStatus.CONNECTED.value)


@router.post("/disconnect", response_model=StatusResponse, responses={400: ERROR_RESPONSES[400]})
def disconnect(manager: SessionManager = Depends(get_session_manager)):
    """
    Disconnect from the broker.

    Returns:
        200: Disconnected
        400: Not connected
    """
    try:
        manager.disconnect()
    except NotConnected as e:
        return _error(400, e.message)

    return StatusResponse(status=ConnectionStatus.DISCONNECTED.value)


@router.post("/send", response_model=StatusResponse, responses=ERROR_RESPONSES)
def send_message(request: SendRequest, manager: SessionManager = Depends(get_session_manager)):
    """
    Send a text message to a queue.

    Returns:
        200: Message sent
        400: Not connected
        503: Broker failed to accept the message
    """
    try:
        manager.send(request.queue_name, request.message)
    except NotConnected as e:
        return _error(400, e.message)
    except SendFailed as e:
        return _error(503, f"Failed to send message: {e.message}")

    return StatusResponse(status="message sent")


@router.get(
    "/receive",
    response_model=MessageResponse,
    responses={**ERROR_RESPONSES, 204: {"description": "No message arrived in time"}},
)
def receive_message(
    request: Request,
    queue_name: Optional[str] = Query(None, alias="queueName", description="Queue to read from"),
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Receive one message, waiting up to the receive timeout.

    Returns:
        200: Message received
        204: Queue empty
        400: Not connected
        503: Broker failed during the receive
    """
    queue_name = queue_name or request.app.state.default_queue

    try:
        text = manager.receive(queue_name)
    except NotConnected as e:
        return _error(400, e.message)
    except ReceiveFailed as e:
        return _error(503, f"Failed to receive message: {e.message}")

    if text is None:
        return Response(status_code=204)
    return MessageResponse(message=text)


@router.get("/status", response_model=StatusResponse)
def get_status(manager: SessionManager = Depends(get_session_manager)):
    """Report whether a broker session is open."""
    status = ConnectionStatus.CONNECTED if manager.is_connected() else ConnectionStatus.DISCONNECTED
    return StatusResponse(status=status.value)


def create_app(
    session_manager: Optional[SessionManager] = None,
    provider: Optional[ConfigProvider] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        session_manager: Session manager to serve; built from configuration when omitted
        provider: Configuration provider, environment-based by default
    """
    provider = provider or config_provider
    api_config = provider.get_api_config()
    manager = session_manager or build_session_manager(provider)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting MQBridge API...")

        yield

        logger.info("Shutting down MQBridge API...")
        app.state.session_manager.shutdown()
        logger.info("MQBridge API shutdown complete")

    app = FastAPI(
        title="MQBridge API",
        description="HTTP facade over a message broker session",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.session_manager = manager
    app.state.default_queue = provider.get_broker_config().default_queue

    app.include_router(router, prefix=api_config.prefix, tags=["broker"])

    @app.get("/healthz")
    async def healthz():
        """
        Minimal liveness endpoint for container probes.

        Returns:
            200: Service is running
        """
        return {"status": "ok"}

    return app


app = create_app()


def main() -> None:
    api_config = config_provider.get_api_config()
    uvicorn.run(
        "mqbridge.main:app",
        host=api_config.host,
        port=api_config.port,
        log_level=api_config.log_level.lower(),
        reload=api_config.debug,
        log_config=get_logging_config(api_config.log_level),
    )


if __name__ == "__main__":
    main()
