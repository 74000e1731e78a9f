"""
Events emitted while a script's executable block runs.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union


@dataclass
class CommandEvent:
    """A line executed inside a ``start ... end`` block and its response."""

    command: str
    response: Any


CommandListener = Callable[[CommandEvent], Union[None, Awaitable[None]]]
