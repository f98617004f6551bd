from ._logging import *
from ._defaults import *

__all__ = [
    "ROOT_LOGGER_NAME",
    "EVENT_LOGGER_NAME",
    "TRACE_LOGGER_NAME",
    "CONNECTION_LOGGER_NAME",
    "INVOCATION_LOGGER_NAME",
    "STATUS_SUCCESS",
    "STATUS_ERROR",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_CLIENT_NAME",
    "DEFAULT_REDACTED_PREFIX_LENGTH",
    "SUPPORTED_TRANSPORTS",
    "UNKNOWN_SERVER_NAME",
]
