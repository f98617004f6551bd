from ._log_event import *
from ._logger import *
from ._redaction import *

__all__ = [
    # Event types
    "EventType",
    # Event classes
    "BaseEvent",
    "ConnectionEvent",
    "ConnectStartEvent",
    "ConnectSuccessEvent",
    "ConnectFailureEvent",
    "DisconnectEvent",
    "ToolCallEvent",
    "SwitchboardEvent",
    # Logger class
    "SwitchboardLogger",
    # Logger factory functions
    "get_logger",
    "get_connection_logger",
    "get_invocation_logger",
    "get_event_logger",
    "get_trace_logger",
    # Setup functions
    "setup_logging",
    "setup_development_logging",
    "setup_production_logging",
    "setup_quiet_logging",
    "setup_verbose_logging",
    # Redaction
    "is_sensitive_header",
    "redact_value",
    "redact_headers",
    "describe_config_for_log",
]
