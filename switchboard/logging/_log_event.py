"""
Structured logging events for Switchboard.

This module provides structured event classes for logging the connection lifecycle
and the invocations made against connected servers.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events that can be logged.

    Attributes
    ----------
    CONNECT_START : str
        A connect attempt started
    CONNECT_SUCCESS : str
        A connect attempt succeeded
    CONNECT_FAILURE : str
        A connect attempt failed
    DISCONNECT : str
        A connection was closed and removed
    TOOL_CALL : str
        A tool call, prompt render or resource read completed
    """
    CONNECT_START = "ConnectStart"
    CONNECT_SUCCESS = "ConnectSuccess"
    CONNECT_FAILURE = "ConnectFailure"
    DISCONNECT = "Disconnect"
    TOOL_CALL = "ToolCall"


class BaseEvent(BaseModel):
    """Base class for all structured events.

    Attributes
    ----------
    event_id : str
        Unique identifier for this event
    timestamp : datetime
        Timestamp when the event occurred
    event_type : EventType
        Type of the event
    source : str, optional
        Source component that generated the event
    metadata : Dict[str, Any]
        Additional metadata about the event
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    """Unique identifier for this event."""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    """Timestamp when the event occurred."""

    event_type: EventType
    """Type of the event."""

    source: Optional[str] = None
    """Source component that generated the event."""

    metadata: Dict[str, Any] = Field(default_factory=dict)
    """Additional metadata about the event."""

    def to_json(self) -> str:
        """Convert the event to JSON string."""
        return json.dumps(self.model_dump(mode="json"), default=str)

    def __str__(self) -> str:
        """String representation of the event."""
        return self.to_json()


class ConnectionEvent(BaseEvent):
    """Base class for connection lifecycle events.

    Attributes
    ----------
    server_id : str
        Identifier of the server
    server_name : str, optional
        Name of the server
    transport : str, optional
        Transport kind of the attempt
    """

    server_id: str
    """Identifier of the server."""

    server_name: Optional[str] = None
    """Name of the server."""

    transport: Optional[str] = None
    """Transport kind of the attempt."""


class ConnectStartEvent(ConnectionEvent):
    """Event emitted when a connect attempt starts.

    Attributes
    ----------
    config : Dict[str, Any]
        Redacted description of the server configuration
    """

    event_type: EventType = EventType.CONNECT_START

    config: Dict[str, Any] = Field(default_factory=dict)
    """Redacted description of the server configuration."""


class ConnectSuccessEvent(ConnectionEvent):
    """Event emitted when a connection is established.

    Attributes
    ----------
    fallback_used : bool
        Whether the SSE fallback produced the connection
    tool_count, prompt_count, resource_count : int
        Number of capabilities discovered
    execution_time : float, optional
        Seconds spent connecting and discovering
    """

    event_type: EventType = EventType.CONNECT_SUCCESS

    fallback_used: bool = False
    tool_count: int = 0
    prompt_count: int = 0
    resource_count: int = 0
    execution_time: Optional[float] = None


class ConnectFailureEvent(ConnectionEvent):
    """Event emitted when a connect attempt fails.

    Attributes
    ----------
    error_kind : str
        Classification of the failure
    error_message : str
        Human-actionable failure message
    fallback_attempted : bool
        Whether the SSE fallback was tried
    """

    event_type: EventType = EventType.CONNECT_FAILURE

    error_kind: str
    error_message: str
    fallback_attempted: bool = False


class DisconnectEvent(ConnectionEvent):
    """Event emitted when a connection is closed and removed from the registry.

    Attributes
    ----------
    reason : str
        Why the connection was closed: 'disconnect', 'superseded' or 'dead'
    close_errors : int
        Number of close steps that failed
    """

    event_type: EventType = EventType.DISCONNECT

    reason: str = "disconnect"
    close_errors: int = 0


class ToolCallEvent(BaseEvent):
    """Event emitted when an invocation against a connected server completes.

    Attributes
    ----------
    server_id : str
        Identifier of the server
    operation : str
        'call_tool', 'get_prompt' or 'read_resource'
    target : str
        Tool name, prompt name or resource uri
    execution_time : float, optional
        Seconds spent in the invocation
    is_error : bool
        Whether the invocation failed or the server flagged its result as an error
    error_message : str, optional
        The failure message, if the invocation raised
    """

    event_type: EventType = EventType.TOOL_CALL

    server_id: str
    operation: str
    target: str
    execution_time: Optional[float] = None
    is_error: bool = False
    error_message: Optional[str] = None


SwitchboardEvent = Union[
    ConnectStartEvent,
    ConnectSuccessEvent,
    ConnectFailureEvent,
    DisconnectEvent,
    ToolCallEvent,
]
"""Type alias for all Switchboard events."""


__all__ = [
    "EventType",
    "BaseEvent",
    "ConnectionEvent",
    "ConnectStartEvent",
    "ConnectSuccessEvent",
    "ConnectFailureEvent",
    "DisconnectEvent",
    "ToolCallEvent",
    "SwitchboardEvent",
]
