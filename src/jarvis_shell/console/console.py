from pathlib import Path
from typing import Any, List, Optional, Protocol

from jarvis_shell.console.rendering import console, render_event
from jarvis_shell.console.repl_console import ReplConsole
from jarvis_shell.interpreter import Interpreter
from jarvis_shell.scripts import validate_script

__all__ = ["Console", "HeadlessConsole", "ReplConsole"]


class Console(Protocol):
    """Common interface for console interactions."""

    interpreter: Interpreter

    async def run(self) -> None:
        pass


class HeadlessConsole(Console):
    """Console that runs a single script and renders each executed line."""

    def __init__(self, interpreter: Interpreter, script: Path, extension: str) -> None:
        self.interpreter = interpreter
        self.script = script
        self.extension = extension
        self.results: Optional[List[List[Any]]] = None

    async def run(self) -> None:
        """
        Run the script, streaming every executed line and its response.
        """
        if not validate_script(self.extension, self.script):
            raise ValueError(f"Script must have a .{self.extension} extension: {self.script}")

        console.print(f"[bold cyan]Script:[/bold cyan] {self.script}")
        self.interpreter.add_listener(render_event)
        try:
            self.results = await self.interpreter.add_script_mode(
                self.extension, self.script
            )
        finally:
            self.interpreter.remove_listener(render_event)
