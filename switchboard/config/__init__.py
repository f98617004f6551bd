"""
Configuration management module for Switchboard.
"""

from ._setting import SwitchboardSetting
from ._server_config_loader import load_server_configs, parse_server_configs

__all__ = [
    "SwitchboardSetting",
    "load_server_configs",
    "parse_server_configs",
]
