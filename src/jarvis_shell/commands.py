"""
Registered commands and the context handed to their handlers.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Tuple, Union

from jarvis_shell.constants import Value
from jarvis_shell.parsing import Pattern

if TYPE_CHECKING:
    from jarvis_shell.interpreter import Interpreter


@dataclass(frozen=True)
class CommandContext:
    """
    Everything a handler receives for one invocation.

    Attributes:
        interpreter: The interpreter running the command; handlers use it to
            start or end an interactive dialogue.
        line: The line as it was sent (with macro arguments substituted).
        tokens: The tokens of the line after constant resolution.
        args: Values bound to the template's variables. Empty while
            continuing an interactive dialogue.
    """

    interpreter: "Interpreter"
    line: str
    tokens: List[Value] = field(default_factory=list)
    args: Dict[str, Value] = field(default_factory=dict)


Handler = Callable[[CommandContext], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class Command:
    """A handler bound to its primary template and aliases."""

    name: str
    handler: Handler
    patterns: Tuple[Pattern, ...]

    @property
    def description(self) -> str:
        doc = getattr(self.handler, "__doc__", None)
        return doc.strip().splitlines()[0] if doc else "No description available"
