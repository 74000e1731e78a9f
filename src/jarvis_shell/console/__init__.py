"""
Console subpackage: holds the REPL loop, the headless script console and rendering.
"""

from jarvis_shell.console.console import Console, HeadlessConsole
from jarvis_shell.console.repl_console import ReplConsole

__all__ = ["Console", "HeadlessConsole", "ReplConsole"]
