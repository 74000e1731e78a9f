"""
Loading embedder-supplied command handlers from ``module:function`` specs.
"""

import importlib
import logging
from typing import Iterable

from jarvis_shell.interpreter import Interpreter

logger = logging.getLogger(__name__)


class PluginLoadError(Exception):
    """Raised when a plugin spec cannot be imported or called."""

    def __init__(self, spec: str, reason: str) -> None:
        self.spec = spec
        super().__init__(f"Could not load plugin '{spec}': {reason}")


def load_plugin(interpreter: Interpreter, spec: str) -> None:
    """
    Import ``module:function`` and call it with the interpreter.

    The function is expected to register its commands with ``add_command``.
    """
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise PluginLoadError(spec, "expected 'module:function'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise PluginLoadError(spec, str(e)) from e
    register = getattr(module, attr, None)
    if not callable(register):
        raise PluginLoadError(spec, f"'{attr}' is not a callable in {module_name}")
    register(interpreter)
    logger.info(f"Loaded plugin {spec}")


def load_plugins(interpreter: Interpreter, specs: Iterable[str]) -> None:
    for spec in specs:
        spec = spec.strip()
        if spec:
            load_plugin(interpreter, spec)
