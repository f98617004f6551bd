"""
Logging constants for Switchboard.

This module defines the logger names used throughout the package.
"""

ROOT_LOGGER_NAME = "switchboard"
"""Logger name used for root logger"""

EVENT_LOGGER_NAME = "switchboard.events"
"""Logger name used for structured event logging"""

TRACE_LOGGER_NAME = "switchboard.trace"
"""Logger name used for developer intended trace logging. The content and format of this log should not be depended upon."""

CONNECTION_LOGGER_NAME = "switchboard.connections"
"""Logger name used for connect/disconnect/describe logging"""

INVOCATION_LOGGER_NAME = "switchboard.invocations"
"""Logger name used for tool, prompt and resource invocation logging"""

# Status values
STATUS_SUCCESS = "success"
"""Success status value"""

STATUS_ERROR = "error"
"""Error status value"""
