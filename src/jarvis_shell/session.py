"""
Session states and line classification.

Every incoming line is classified once into a ``LineKind``; the interpreter
then picks the transition from the (state, kind) pair.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from jarvis_shell.commands import Command

EXIT_DIALOGUE = ".."
BEGIN_MACRO = "how to"
BEGIN_CONSTANTS = "in this context"
END = "end"
BLOCK_START = "start"

_BEGIN_MACRO_RE = re.compile(r"^how to\s+(?P<template>.+)$")
_IMPORT_RE = re.compile(r"""^(?P<name>\S+) is from (?P<quote>['"])(?P<path>.+)(?P=quote)$""")
_DEFINE_RE = re.compile(r"^(?P<key>\S+) is (?P<value>.+)$")


class LineKind(str, Enum):
    """Kinds of lines the session recognizes."""

    empty = "empty"
    exit_dialogue = "exit_dialogue"
    begin_macro = "begin_macro"
    begin_constants = "begin_constants"
    end = "end"
    block_start = "block_start"
    import_ = "import"
    define = "define"
    other = "other"


@dataclass(frozen=True)
class ParsedLine:
    kind: LineKind
    text: str
    fields: Dict[str, str] = field(default_factory=dict)


def classify_line(line: Optional[str]) -> ParsedLine:
    """Classify a raw line; ``fields`` carries the parts named by the kind."""
    text = (line or "").strip()
    if not text:
        return ParsedLine(LineKind.empty, text)
    if text == EXIT_DIALOGUE:
        return ParsedLine(LineKind.exit_dialogue, text)
    if text == BEGIN_CONSTANTS:
        return ParsedLine(LineKind.begin_constants, text)
    if text == END:
        return ParsedLine(LineKind.end, text)
    if text == BLOCK_START:
        return ParsedLine(LineKind.block_start, text)

    match = _BEGIN_MACRO_RE.match(text)
    if match:
        return ParsedLine(LineKind.begin_macro, text, {"template": match["template"]})
    match = _IMPORT_RE.match(text)
    if match:
        return ParsedLine(
            LineKind.import_, text, {"name": match["name"], "path": match["path"]}
        )
    match = _DEFINE_RE.match(text)
    if match:
        return ParsedLine(
            LineKind.define, text, {"key": match["key"], "value": match["value"]}
        )
    return ParsedLine(LineKind.other, text)


@dataclass
class Idle:
    """No dialogue, macro recording or constants block is open."""


@dataclass
class ActiveCommand:
    """An interactive command is mid-dialogue."""

    command: Command
    local_state: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RecordingMacro:
    """Between ``how to ...`` and ``end``."""

    template: str
    lines: List[str] = field(default_factory=list)


@dataclass
class RecordingConstants:
    """Between ``in this context`` and ``end``; pending pairs live under ``script``."""

    script: str


SessionState = Union[Idle, ActiveCommand, RecordingMacro, RecordingConstants]
