"""JARVIS - just another reusable verbal interpreter shell."""

from .commands import Command, CommandContext, Handler
from .events import CommandEvent
from .interpreter import Interpreter
from .macros import Macro
from .scripts import FileScriptReader, ScriptError, ScriptParseError, ScriptReadError

__all__ = [
    "Command",
    "CommandContext",
    "CommandEvent",
    "FileScriptReader",
    "Handler",
    "Interpreter",
    "Macro",
    "ScriptError",
    "ScriptParseError",
    "ScriptReadError",
]
