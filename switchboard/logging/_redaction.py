"""
Redaction of credential-bearing values before they reach a log record.
"""

from typing import Any, Dict, Mapping, Optional

from switchboard.types import ServerConfig

_SENSITIVE_HEADER_NAMES = {"authorization", "proxy-authorization", "cookie", "set-cookie"}
_SENSITIVE_HEADER_MARKERS = ("token", "secret", "key", "auth")


def is_sensitive_header(name: str) -> bool:
    lowered = name.lower()
    if lowered in _SENSITIVE_HEADER_NAMES:
        return True
    return any(marker in lowered for marker in _SENSITIVE_HEADER_MARKERS)


def redact_value(value: str, prefix_length: int) -> str:
    """
    Truncate a credential to a short visible prefix.

    An authorization scheme such as `Bearer` is kept intact; only the credential after it
    is truncated.

    Parameters
    ----------
    value : str
        The credential value.
    prefix_length : int
        Characters of the credential to keep.

    Returns
    -------
    str
        The redacted value, always ending in '...'.
    """
    scheme, sep, credential = value.partition(" ")
    if sep and scheme.isalpha():
        return f"{scheme} {credential[:prefix_length]}..."
    return f"{value[:prefix_length]}..."


def redact_headers(
    headers: Optional[Mapping[str, str]],
    prefix_length: Optional[int] = None,
) -> Dict[str, str]:
    """
    Return a copy of the headers with credential-bearing values redacted.
    """
    if prefix_length is None:
        from switchboard.config import SwitchboardSetting
        prefix_length = SwitchboardSetting.read().redacted_prefix_length

    redacted: Dict[str, str] = {}
    for name, value in (headers or {}).items():
        if is_sensitive_header(name):
            redacted[name] = redact_value(str(value), prefix_length)
        else:
            redacted[name] = value
    return redacted


def describe_config_for_log(config: ServerConfig) -> Dict[str, Any]:
    """
    Describe a server configuration for diagnostics without leaking secrets.

    Environment variable values are never echoed, only their names.
    """
    description: Dict[str, Any] = {
        "id": config.id,
        "name": config.name,
        "transport": config.transport,
    }
    if config.command is not None:
        description["command"] = config.command
        description["args_count"] = len(config.args)
        description["env_keys"] = sorted(config.env.keys())
    if config.url is not None:
        description["url"] = config.url
        description["headers"] = redact_headers(config.headers)
    return description


__all__ = [
    "is_sensitive_header",
    "redact_value",
    "redact_headers",
    "describe_config_for_log",
]
