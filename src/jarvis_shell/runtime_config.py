"""
Runtime configuration for the jarvis shell.

This module provides:
- load_envs(): load JARVIS_LOG_LEVEL, JARVIS_SCRIPT_EXTENSION and JARVIS_PLUGINS
  from a .env file if they are not already present in the environment.
- RuntimeConfig: a dataclass holding runtime settings (script, extension,
  plugins and log level).
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from dotenv import dotenv_values

# Environment variable names
JARVIS_LOG_LEVEL_ENV: str = "JARVIS_LOG_LEVEL"
JARVIS_SCRIPT_EXTENSION_ENV: str = "JARVIS_SCRIPT_EXTENSION"
JARVIS_PLUGINS_ENV: str = "JARVIS_PLUGINS"

DEFAULT_SCRIPT_EXTENSION: str = "jarvis"


def load_envs(env_file: Optional[str] = None) -> None:
    """
    Load JARVIS_LOG_LEVEL, JARVIS_SCRIPT_EXTENSION and JARVIS_PLUGINS from a .env file
    into the process environment if they are not already set.
    """
    env_values = dotenv_values(env_file) if env_file else dotenv_values()
    for key in (
        JARVIS_LOG_LEVEL_ENV,
        JARVIS_SCRIPT_EXTENSION_ENV,
        JARVIS_PLUGINS_ENV,
    ):
        if not os.environ.get(key):
            val = env_values.get(key)
            if val:
                os.environ[key] = str(val)


class LogLevel(str, Enum):
    """Supported log levels."""

    debug = "DEBUG"
    info = "INFO"
    warning = "WARNING"
    error = "ERROR"


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Holds runtime configuration for the jarvis shell.

    Attributes:
        script: Script to run headless; None opens the interactive REPL.
        extension: Required script file extension, without the dot.
        plugins: ``module:function`` specs called with the interpreter to register commands.
        log_level: Level for the log file.
        base_dir: Directory relative script and import paths are resolved against.
    """

    script: Optional[Path] = None
    extension: str = DEFAULT_SCRIPT_EXTENSION
    plugins: Tuple[str, ...] = ()
    log_level: LogLevel = LogLevel.info
    base_dir: Path = field(default_factory=Path.cwd)


def get_config_dir() -> Path:
    """
    Return the jarvis config directory under XDG_CONFIG_HOME or fallback to ~/.config.
    """
    config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "jarvis_shell"


def get_data_dir() -> Path:
    """
    Return the jarvis data directory under XDG_DATA_HOME or fallback to ~/.local/share.
    """
    data_home = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return data_home / "jarvis_shell"
