import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional

import typer
from typing_extensions import Annotated

from jarvis_shell.builtins import register_builtin_commands
from jarvis_shell.console.console import Console, HeadlessConsole, ReplConsole
from jarvis_shell.interpreter import Interpreter
from jarvis_shell.logger import setup_logging
from jarvis_shell.plugins import PluginLoadError, load_plugins
from jarvis_shell.runtime_config import (
    DEFAULT_SCRIPT_EXTENSION,
    JARVIS_LOG_LEVEL_ENV,
    JARVIS_PLUGINS_ENV,
    JARVIS_SCRIPT_EXTENSION_ENV,
    LogLevel,
    RuntimeConfig,
    load_envs,
)
from jarvis_shell.scripts import ScriptError

# Set by create_app(); None means the default factory
_interpreter_factory: Optional[Callable[[RuntimeConfig], Interpreter]] = None
_console_factory: Optional[Callable[[Interpreter, RuntimeConfig], Console]] = None


def default_interpreter_factory(config: RuntimeConfig) -> Interpreter:
    """Default factory: built-in commands plus the configured plugins."""
    interpreter = Interpreter(base_dir=config.base_dir)
    register_builtin_commands(interpreter)
    load_plugins(interpreter, config.plugins)
    return interpreter


def default_console_factory(interpreter: Interpreter, config: RuntimeConfig) -> Console:
    """Headless console for a script, REPL otherwise."""
    if config.script:
        return HeadlessConsole(interpreter, config.script, config.extension)
    else:
        return ReplConsole(interpreter)


def _split_plugins(plugins: Optional[List[str]]) -> tuple[str, ...]:
    specs: list[str] = []
    for value in plugins or []:
        specs.extend(s.strip() for s in value.split(",") if s.strip())
    return tuple(specs)


def main(
    script: Annotated[
        Optional[Path],
        typer.Argument(help="Script to run; omit to start the interactive shell"),
    ] = None,
    extension: Annotated[
        str,
        typer.Option(
            "--extension",
            "-e",
            envvar=JARVIS_SCRIPT_EXTENSION_ENV,
            help="Required script file extension",
        ),
    ] = DEFAULT_SCRIPT_EXTENSION,
    plugin: Annotated[
        Optional[List[str]],
        typer.Option(
            "--plugin",
            "-p",
            envvar=JARVIS_PLUGINS_ENV,
            help="module:function called with the interpreter to register commands",
        ),
    ] = None,
    log_level: Annotated[
        LogLevel,
        typer.Option("--log-level", envvar=JARVIS_LOG_LEVEL_ENV, help="Log file level"),
    ] = LogLevel.info,
) -> None:
    """JARVIS - just another reusable verbal interpreter shell"""
    logger = logging.getLogger(__name__)
    setup_logging(log_level.value)

    cfg = RuntimeConfig(
        script=script,
        extension=extension,
        plugins=_split_plugins(plugin),
        log_level=log_level,
    )

    if cfg.script:
        logger.info(f"Running script {cfg.script}")
    else:
        logger.info("Starting interactive shell")

    try:
        factory = _interpreter_factory or default_interpreter_factory
        console_fact = _console_factory or default_console_factory
        interpreter = factory(cfg)
        console = console_fact(interpreter, cfg)
        asyncio.run(console.run())
    except (PluginLoadError, ScriptError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print("\nExiting...")


def create_app(
    interpreter_factory: Optional[Callable[[RuntimeConfig], Interpreter]] = None,
    console_factory: Optional[Callable[[Interpreter, RuntimeConfig], Console]] = None,
) -> typer.Typer:
    """
    Build the jarvis Typer application.

    Args:
        interpreter_factory: Builds the Interpreter from the runtime config
        console_factory: Builds the Console that drives the interpreter

    Returns:
        Typer application
    """
    # .env values fill in whatever the environment leaves unset
    load_envs()

    global _interpreter_factory, _console_factory
    _interpreter_factory = interpreter_factory
    _console_factory = console_factory

    app = typer.Typer(rich_markup_mode=None)
    app.command()(main)

    return app


# Create default app instance for the console script
app = create_app()


if __name__ == "__main__":
    app()
