from typing import Any, List, Union

from rich.console import Console, RenderableType
from rich.pretty import Pretty
from rich.text import Text
from rich.tree import Tree

from jarvis_shell.events import CommandEvent

NO_MATCH = "No matching command or macro."

console = Console()


def _renderable(value: Any) -> RenderableType:
    if value is None:
        return Text(NO_MATCH, style="dim")
    if isinstance(value, str):
        return Text(value)
    return Pretty(value)


def _add_results(tree: Tree, results: List[Any]) -> None:
    for result in results:
        if isinstance(result, list):
            _add_results(tree.add(Text("macro", style="dim cyan")), result)
        else:
            tree.add(_renderable(result))


def render_result(result: Any) -> None:
    """Render the result of one line via Rich; macro results become a tree."""
    if isinstance(result, list):
        tree = Tree(Text("results", style="bold cyan"), guide_style="dim")
        _add_results(tree, result)
        console.print(tree)
    else:
        console.print(_renderable(result))


def render_event(event: CommandEvent) -> None:
    """Render a line executed by a script block, followed by its response."""
    console.print(Text.assemble(("› ", "dim"), (event.command, "dim")))
    render_result(event.response)


def render_error(message: Union[str, Exception]) -> None:
    console.print(Text(f"error: {message}", style="bold red"))
