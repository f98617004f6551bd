"""
Main logging module for Switchboard.

This module provides convenient logging functionality for the connection manager,
including structured event logging and trace logging.
"""

import logging
from typing import Any, Dict, Optional

from switchboard.constants import (
    CONNECTION_LOGGER_NAME,
    EVENT_LOGGER_NAME,
    INVOCATION_LOGGER_NAME,
    ROOT_LOGGER_NAME,
    TRACE_LOGGER_NAME,
)

from ._log_event import (
    ConnectFailureEvent,
    ConnectStartEvent,
    ConnectSuccessEvent,
    DisconnectEvent,
    SwitchboardEvent,
    ToolCallEvent,
)


class SwitchboardLogger:
    """Main logger class for Switchboard."""

    def __init__(self, name: str, source: Optional[str] = None):
        """Initialize the logger.

        Parameters
        ----------
        name : str
            Logger name
        source : str, optional
            Source component name
        """
        self._logger = logging.getLogger(name)
        self._source = source

    @property
    def name(self) -> str:
        return self._logger.name

    def _log_event(self, event: SwitchboardEvent) -> None:
        """Log a structured event.

        Parameters
        ----------
        event : SwitchboardEvent
            The structured event to log
        """
        if self._source and hasattr(event, 'source'):
            event.source = self._source
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(event)

    # Connection events
    def log_connect_start(
        self,
        server_id: str,
        server_name: Optional[str],
        transport: Optional[str],
        config: Dict[str, Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log the start of a connect attempt.

        Parameters
        ----------
        server_id : str
            Identifier of the server
        server_name : str, optional
            Name of the server
        transport : str, optional
            Transport kind of the attempt
        config : Dict[str, Any]
            Redacted description of the server configuration
        metadata : Dict[str, Any], optional
            Additional metadata about the event
        """
        event = ConnectStartEvent(
            server_id=server_id,
            server_name=server_name,
            transport=transport,
            config=config,
            metadata=metadata or {},
        )
        self._log_event(event)

    def log_connect_success(
        self,
        server_id: str,
        server_name: Optional[str],
        transport: Optional[str],
        fallback_used: bool = False,
        tool_count: int = 0,
        prompt_count: int = 0,
        resource_count: int = 0,
        execution_time: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an established connection and the size of its capability listings."""
        event = ConnectSuccessEvent(
            server_id=server_id,
            server_name=server_name,
            transport=transport,
            fallback_used=fallback_used,
            tool_count=tool_count,
            prompt_count=prompt_count,
            resource_count=resource_count,
            execution_time=execution_time,
            metadata=metadata or {},
        )
        self._log_event(event)

    def log_connect_failure(
        self,
        server_id: str,
        server_name: Optional[str],
        transport: Optional[str],
        error_kind: str,
        error_message: str,
        fallback_attempted: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a failed connect attempt."""
        event = ConnectFailureEvent(
            server_id=server_id,
            server_name=server_name,
            transport=transport,
            error_kind=error_kind,
            error_message=error_message,
            fallback_attempted=fallback_attempted,
            metadata=metadata or {},
        )
        self._log_event(event)

    def log_disconnect(
        self,
        server_id: str,
        reason: str = "disconnect",
        close_errors: int = 0,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a connection leaving the registry."""
        event = DisconnectEvent(
            server_id=server_id,
            reason=reason,
            close_errors=close_errors,
            metadata=metadata or {},
        )
        self._log_event(event)

    # Invocation events
    def log_tool_call(
        self,
        server_id: str,
        operation: str,
        target: str,
        execution_time: Optional[float] = None,
        is_error: bool = False,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log a completed tool call, prompt render or resource read."""
        event = ToolCallEvent(
            server_id=server_id,
            operation=operation,
            target=target,
            execution_time=execution_time,
            is_error=is_error,
            error_message=error_message,
            metadata=metadata or {},
        )
        self._log_event(event)

    # Standard logging methods
    def debug(self, message: str, *args, **kwargs) -> None:
        """Log a debug message."""
        self._logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        """Log an info message."""
        self._logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        """Log a warning message."""
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        """Log an error message."""
        self._logger.error(message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs) -> None:
        """Log a critical message."""
        self._logger.critical(message, *args, **kwargs)


def get_logger(name: str, source: Optional[str] = None) -> SwitchboardLogger:
    """Get a Switchboard logger instance.

    Parameters
    ----------
    name : str
        Logger name
    source : str, optional
        Source component name

    Returns
    -------
    SwitchboardLogger
        SwitchboardLogger instance
    """
    return SwitchboardLogger(name, source)


def get_connection_logger(source: Optional[str] = None) -> SwitchboardLogger:
    """Get the logger for connect, disconnect and describe operations.

    Parameters
    ----------
    source : str, optional
        Source component name

    Returns
    -------
    SwitchboardLogger
        SwitchboardLogger instance for connection logging
    """
    return SwitchboardLogger(CONNECTION_LOGGER_NAME, source)


def get_invocation_logger(source: Optional[str] = None) -> SwitchboardLogger:
    """Get the logger for tool, prompt and resource invocations.

    Parameters
    ----------
    source : str, optional
        Source component name

    Returns
    -------
    SwitchboardLogger
        SwitchboardLogger instance for invocation logging
    """
    return SwitchboardLogger(INVOCATION_LOGGER_NAME, source)


def get_event_logger(source: Optional[str] = None) -> SwitchboardLogger:
    """Get an event logger instance."""
    return SwitchboardLogger(EVENT_LOGGER_NAME, source)


def get_trace_logger(source: Optional[str] = None) -> SwitchboardLogger:
    """Get a trace logger instance."""
    return SwitchboardLogger(TRACE_LOGGER_NAME, source)


def setup_logging(
    level: int = logging.INFO,
    enable_trace: bool = True,
    enable_events: bool = True,
    enable_connections: bool = True,
    enable_invocations: bool = True,
    handlers: Optional[list] = None,
    component_levels: Optional[Dict[str, int]] = None,
) -> None:
    """Setup logging configuration for Switchboard.

    Parameters
    ----------
    level : int, default=logging.INFO
        Default logging level for all components
    enable_trace : bool, default=True
        Whether to enable trace logging (DEBUG level)
    enable_events : bool, default=True
        Whether to enable structured event logging (DEBUG level)
    enable_connections : bool, default=True
        Whether to enable connection logging (INFO level)
    enable_invocations : bool, default=True
        Whether to enable invocation logging (INFO level)
    handlers : list, optional
        Custom log handlers to add to the root logger
    component_levels : dict, optional
        Custom logging levels for specific components.
        Keys should be component names ('connections', 'invocations', 'events', 'trace')
        and values should be logging level constants.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)

    if handlers:
        for handler in handlers:
            root_logger.addHandler(handler)
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    component_configs = {
        'trace': (TRACE_LOGGER_NAME, logging.DEBUG if enable_trace else logging.CRITICAL),
        'events': (EVENT_LOGGER_NAME, logging.DEBUG if enable_events else logging.CRITICAL),
        'connections': (CONNECTION_LOGGER_NAME, logging.INFO if enable_connections else logging.CRITICAL),
        'invocations': (INVOCATION_LOGGER_NAME, logging.INFO if enable_invocations else logging.CRITICAL),
    }

    if component_levels:
        for component, custom_level in component_levels.items():
            if component in component_configs:
                component_configs[component] = (component_configs[component][0], custom_level)

    for component, (logger_name, component_level) in component_configs.items():
        component_logger = logging.getLogger(logger_name)
        component_logger.setLevel(component_level)
        component_logger.propagate = True


def setup_development_logging() -> None:
    """Setup logging configuration optimized for development.

    This configuration enables all logging levels and components.
    """
    setup_logging(
        level=logging.DEBUG,
        enable_trace=True,
        enable_events=True,
        enable_connections=True,
        enable_invocations=True,
    )


def setup_production_logging() -> None:
    """Setup logging configuration optimized for production.

    This configuration disables verbose logging while keeping
    important operational information visible.
    """
    setup_logging(
        level=logging.WARNING,
        enable_trace=False,
        enable_events=False,
        enable_connections=True,
        enable_invocations=True,
    )


def setup_quiet_logging() -> None:
    """Setup minimal logging configuration.

    This configuration only shows errors.
    """
    setup_logging(
        level=logging.ERROR,
        enable_trace=False,
        enable_events=False,
        enable_connections=False,
        enable_invocations=False,
    )


def setup_verbose_logging() -> None:
    """Setup verbose logging configuration."""
    setup_logging(
        level=logging.DEBUG,
        component_levels={
            'trace': logging.DEBUG,
            'events': logging.DEBUG,
            'connections': logging.DEBUG,
            'invocations': logging.DEBUG,
        }
    )


__all__ = [
    "SwitchboardLogger",
    "get_logger",
    "get_connection_logger",
    "get_invocation_logger",
    "get_event_logger",
    "get_trace_logger",
    "setup_logging",
    "setup_development_logging",
    "setup_production_logging",
    "setup_quiet_logging",
    "setup_verbose_logging",
]
