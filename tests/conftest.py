import logging
import textwrap
from pathlib import Path
from typing import Callable, Iterator

import pytest

from jarvis_shell.commands import CommandContext
from jarvis_shell.interpreter import Interpreter


def add_demo_commands(jarvis: Interpreter) -> Interpreter:
    """Register the small command set most tests run against."""
    jarvis.add_command("run hello", lambda ctx: "Hello")
    jarvis.add_command("run world", lambda ctx: "world")
    jarvis.add_command("load $language", lambda ctx: f"Running, {ctx.args['language']}")
    jarvis.add_command("say $string", lambda ctx: ctx.args["string"])
    jarvis.add_command("end $bot", lambda ctx: f"Ending, {ctx.args['bot']}")
    return jarvis


class Counter:
    """Handler counting its invocations."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self, ctx: CommandContext) -> int:
        self.calls += 1
        return self.calls


@pytest.fixture
def jarvis(tmp_path: Path) -> Interpreter:
    return add_demo_commands(Interpreter(base_dir=tmp_path))


@pytest.fixture
def write_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write a dedented script below tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def isolate_data_dir(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Keep log files and prompt history out of the real XDG directories
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    yield
    package_logger = logging.getLogger("jarvis_shell")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)
