"""
Reading script files and JSON imports from disk.

The interpreter only depends on the ``ScriptReader`` protocol, so embedders
can serve scripts from somewhere other than the local filesystem.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Protocol, Union

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
JSON_SUFFIX = ".json"

PathLike = Union[str, Path]


class ScriptError(Exception):
    """Base exception for script loading failures."""

    pass


class ScriptReadError(ScriptError):
    """Raised when a script or import target cannot be read."""

    def __init__(self, path: PathLike) -> None:
        self.path = str(path)
        super().__init__("Could not read file from the specified location!")


class ScriptParseError(ScriptError):
    """Raised when a JSON import target is malformed."""

    def __init__(self, path: PathLike, reason: str) -> None:
        self.path = str(path)
        super().__init__(f"Could not parse JSON from '{path}': {reason}")


class ScriptReader(Protocol):
    """Source of script lines and JSON values."""

    def read_lines(self, path: str) -> List[str]:
        ...

    def read_json(self, path: str) -> Any:
        ...


def filter_script_lines(content: str) -> List[str]:
    """Strip every line and drop blanks and ``#`` comments."""
    lines = []
    for raw in content.splitlines():
        line = raw.strip()
        if line and not line.startswith(COMMENT_PREFIX):
            lines.append(line)
    return lines


def validate_script(extension: str, path: Optional[PathLike]) -> bool:
    """Return True if ``path`` is set and has the ``.extension`` suffix."""
    if not path:
        return False
    return Path(path).suffix == f".{extension.lstrip('.')}"


def is_json_import(path: PathLike) -> bool:
    return Path(path).suffix.lower() == JSON_SUFFIX


class FileScriptReader:
    """Reads scripts and JSON imports from the local filesystem."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _read_text(self, path: str) -> str:
        try:
            return Path(path).read_text(encoding=self.encoding)
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            raise ScriptReadError(path) from e

    def read_lines(self, path: str) -> List[str]:
        return filter_script_lines(self._read_text(path))

    def read_json(self, path: str) -> Any:
        content = self._read_text(path)
        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ScriptParseError(path, str(e)) from e
