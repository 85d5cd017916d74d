"""
MQBridge API data models.

Request bodies use the camelCase field names clients send
(brokerUrl, queueName); Python attributes are snake_case.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ConnectionStatus(str, Enum):
    """Broker connection state reported by the API."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


# Request Models (API Input)


class ConnectRequest(BaseModel):
    """Request to connect to a broker."""

    model_config = ConfigDict(populate_by_name=True)

    broker_url: str = Field(
        ..., alias="brokerUrl", description="Broker URL, e.g. amqp://localhost:5672/", min_length=1
    )
    username: Optional[str] = Field(None, description="Broker user; anonymous when empty")
    password: Optional[str] = Field(None, description="Broker password")


class SendRequest(BaseModel):
    """Request to send a text message to a queue."""

    model_config = ConfigDict(populate_by_name=True)

    queue_name: str = Field(..., alias="queueName", description="Target queue", min_length=1)
    message: str = Field(..., description="Message text")


# Response Models (API Output)


class StatusResponse(BaseModel):
    """Outcome of a lifecycle operation or a status query."""

    status: str


class MessageResponse(BaseModel):
    """A received message."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned with 4xx/5xx responses."""

    error: str
