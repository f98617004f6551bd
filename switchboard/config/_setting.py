"""
Process-wide settings of the connection manager.
"""

from typing import ClassVar, Optional
from threading import Lock

from pydantic import BaseModel, Field

from switchboard.constants import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_REDACTED_PREFIX_LENGTH,
    DEFAULT_REQUEST_TIMEOUT,
)


def _package_version() -> str:
    from switchboard import __version__
    return __version__


class SwitchboardSetting(BaseModel):
    """
    Settings shared by every connection supervisor in the process.

    This class uses a singleton pattern. The singleton instance is accessed via
    `SwitchboardSetting.read()` and can be configured via `SwitchboardSetting.set()`.
    Values passed explicitly to a `ConnectionSupervisor` take precedence over the
    values held here.

    Attributes
    ----------
    connect_timeout : float
        Seconds a single connect attempt may take before it is abandoned.
    request_timeout : float
        Seconds the protocol session waits for any single response.
    client_name : str
        Client name announced to servers during initialization.
    client_version : str
        Client version announced to servers during initialization.
    redacted_prefix_length : int
        Characters of a credential kept visible in diagnostic logs.
    """

    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    client_name: str = DEFAULT_CLIENT_NAME
    client_version: str = Field(default_factory=_package_version)
    redacted_prefix_length: int = Field(default=DEFAULT_REDACTED_PREFIX_LENGTH, ge=0)

    # Singleton instance
    _instance: ClassVar[Optional["SwitchboardSetting"]] = None
    _lock: ClassVar[Lock] = Lock()

    @classmethod
    def read(cls) -> "SwitchboardSetting":
        """
        Get the singleton setting instance.

        Returns
        -------
        SwitchboardSetting
            The singleton setting instance.
        """
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def set(
        cls,
        connect_timeout: Optional[float] = None,
        request_timeout: Optional[float] = None,
        client_name: Optional[str] = None,
        client_version: Optional[str] = None,
        redacted_prefix_length: Optional[int] = None,
    ) -> None:
        """
        Set setting fields. Fields passed as None keep their current value.
        """
        instance = cls.read()
        updates = {
            "connect_timeout": connect_timeout,
            "request_timeout": request_timeout,
            "client_name": client_name,
            "client_version": client_version,
            "redacted_prefix_length": redacted_prefix_length,
        }
        updates = {k: v for k, v in updates.items() if v is not None}
        with cls._lock:
            cls._instance = cls.model_validate({**instance.model_dump(), **updates})

    @classmethod
    def reset(cls) -> None:
        """
        Restore the default settings.
        """
        with cls._lock:
            cls._instance = None
