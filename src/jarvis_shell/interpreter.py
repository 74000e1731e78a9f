"""
The jarvis interpreter.

Owns the command, macro and constant registries of one session and routes
every line through the session state machine:

    jarvis = Interpreter()
    jarvis.add_command("say $string", lambda ctx: ctx.args["string"])
    await jarvis.send('say "Hello World"')   # 'Hello World'

Scripts are run with ``run_script``; only lines inside ``start ... end``
blocks execute, while macro and constant definitions are accepted anywhere.
"""

import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from jarvis_shell.commands import Command, CommandContext, Handler
from jarvis_shell.constants import (
    Value,
    is_constant_name,
    parse_constant_value,
    resolve_constants,
    resolve_token,
)
from jarvis_shell.events import CommandEvent, CommandListener
from jarvis_shell.macros import Macro, bind_arguments, macro_name, substitute_args
from jarvis_shell.parsing import compile_pattern, match_pattern, match_patterns, tokenize
from jarvis_shell.scripts import (
    FileScriptReader,
    PathLike,
    ScriptReader,
    is_json_import,
    validate_script,
)
from jarvis_shell.session import (
    ActiveCommand,
    Idle,
    LineKind,
    ParsedLine,
    RecordingConstants,
    RecordingMacro,
    SessionState,
    classify_line,
)

logger = logging.getLogger(__name__)

# Scope key for constants defined outside of any script
SESSION_SCOPE = "<session>"

MACRO_INTRO = (
    "You are now entering a macro. Type the statements, one line at a time. "
    "When done, type 'end'."
)
MACRO_ADDED = 'Macro "{name}" has been added.'
MACRO_EXISTS = "Macro name already exists!"
INVALID_MACRO_LINE = "Not a valid Command/Macro."
CONSTANTS_INTRO = (
    "You are now entering constants. Type the constants, one line at a time. "
    "When done, type 'end'."
)
CONSTANTS_ADDED = 'Constants "{keys}" have been added.'
CONSTANT_EXISTS = "'{key}' constant already exists!"
CONSTANT_NAME_RULE = "A constant name should be in block letters."
DIALOGUE_DONE = "Done with {name}."

# Lines forwarded from a script even outside of a start block
_CONTEXT_OPENERS = (LineKind.begin_macro, LineKind.begin_constants)


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class Interpreter:
    """A command-language interpreter session."""

    def __init__(
        self,
        reader: Optional[ScriptReader] = None,
        base_dir: Optional[Path] = None,
    ) -> None:
        self.reader: ScriptReader = reader or FileScriptReader()
        self.base_dir = base_dir or Path.cwd()

        self._commands: List[Command] = []
        self._macros: List[Macro] = []
        self._constants: Dict[str, Value] = {}
        # Uncommitted constants, keyed by the script whose block defines them
        self._pending: Dict[str, Dict[str, Value]] = {}
        self._state: SessionState = Idle()

        self._import_stack: List[str] = []
        self._imports: Dict[str, List[str]] = {}
        self._macro_stack: List[str] = []
        self._listeners: List[CommandListener] = []

    # ------------------------------------------------------------------
    # Registries
    # ------------------------------------------------------------------

    @property
    def commands(self) -> Tuple[Command, ...]:
        return tuple(self._commands)

    @property
    def macros(self) -> Tuple[Macro, ...]:
        return tuple(self._macros)

    @property
    def constants(self) -> Mapping[str, Value]:
        return dict(self._constants)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def import_stack(self) -> Tuple[str, ...]:
        return tuple(self._import_stack)

    @property
    def macro_stack(self) -> Tuple[str, ...]:
        return tuple(self._macro_stack)

    @property
    def imports(self) -> Mapping[str, List[str]]:
        """Scripts imported during the current run and the names they were requested as."""
        return {path: list(names) for path, names in self._imports.items()}

    @property
    def current_script(self) -> str:
        return self._import_stack[-1] if self._import_stack else SESSION_SCOPE

    def pending_constants(self, script: Optional[str] = None) -> Mapping[str, Value]:
        return dict(self._pending.get(script or self.current_script, {}))

    def add_command(
        self,
        command: str,
        handler: Handler,
        aliases: Optional[Sequence[str]] = None,
    ) -> Command:
        """
        Register a command template and its handler.

        Args:
            command: Primary template, e.g. ``"greet $name"``.
            handler: Called with a ``CommandContext``; may be a coroutine function.
            aliases: Alternative templates tried after the primary one, in order.
        """
        templates = [command, *(aliases or [])]
        registered = Command(
            name=command.strip(),
            handler=handler,
            patterns=tuple(compile_pattern(t) for t in templates),
        )
        self._commands.append(registered)
        logger.debug(f"Registered command '{registered.name}'")
        return registered

    def command(self, template: str, *aliases: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``add_command``."""

        def decorator(handler: Handler) -> Handler:
            self.add_command(template, handler, aliases)
            return handler

        return decorator

    def find_command(self, name: str) -> Optional[Command]:
        """Look a command up by its primary template, then by matching ``name`` as input."""
        for command in self._commands:
            if command.name == name:
                return command
        tokens = tokenize(name)
        for command in self._commands:
            if match_patterns(command.patterns, tokens) is not None:
                return command
        return None

    def find_macro(self, name: str) -> Optional[Macro]:
        for macro in self._macros:
            if macro.name == name:
                return macro
        return None

    def add_listener(self, listener: CommandListener) -> None:
        """Subscribe to ``CommandEvent``s emitted while script blocks run."""
        self._listeners.append(listener)

    def remove_listener(self, listener: CommandListener) -> None:
        self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Interactive dialogues (called from handlers)
    # ------------------------------------------------------------------

    @property
    def active_command(self) -> Optional[Command]:
        if isinstance(self._state, ActiveCommand):
            return self._state.command
        return None

    @property
    def command_state(self) -> Dict[str, Any]:
        """Dialogue-local state of the active command (empty when idle)."""
        if isinstance(self._state, ActiveCommand):
            return self._state.local_state
        return {}

    def start_command(self, name: str) -> None:
        """Enter an interactive dialogue: following lines go straight to this command."""
        command = self.find_command(name)
        if command is None:
            raise ValueError(f"Unknown command: {name}")
        self._state = ActiveCommand(command)

    def end_command(self) -> None:
        """Leave the interactive dialogue and drop its local state."""
        if isinstance(self._state, ActiveCommand):
            self._state = Idle()

    def set_command_state(self, **data: Any) -> None:
        if not isinstance(self._state, ActiveCommand):
            raise RuntimeError("No interactive command is active")
        self._state.local_state.update(data)

    # ------------------------------------------------------------------
    # Session state machine
    # ------------------------------------------------------------------

    async def send(self, line: Optional[str]) -> Any:
        """
        Process one line of input and return its result.

        Returns None when nothing matches, a string for rule violations and
        state messages, a list for macro calls, and the handler's value
        otherwise.
        """
        parsed = classify_line(line)
        if parsed.kind is LineKind.empty:
            return None

        state = self._state
        match state:
            case ActiveCommand(command=command):
                if parsed.kind is LineKind.exit_dialogue:
                    self.end_command()
                    return DIALOGUE_DONE.format(name=command.name)
                ctx = CommandContext(self, parsed.text, list(tokenize(parsed.text)))
                return await _resolve(command.handler(ctx))
            case RecordingMacro():
                return self._record_macro_line(state, parsed)
            case RecordingConstants():
                return await self._record_constants_line(state, parsed)

        if parsed.kind is LineKind.begin_macro:
            return self._begin_macro(parsed.fields["template"])
        if parsed.kind is LineKind.begin_constants:
            return self._begin_constants()
        tokens = resolve_constants(tokenize(parsed.text), self._constants)
        return await self._dispatch(parsed.text, tokens)

    async def _dispatch(self, line: str, tokens: List[Value]) -> Any:
        if not tokens:
            return None
        for command in self._commands:
            args = match_patterns(command.patterns, tokens)
            if args is not None:
                ctx = CommandContext(self, line, tokens, args)
                return await _resolve(command.handler(ctx))
        for macro in self._macros:
            args = match_pattern(macro.pattern, tokens)
            if args is not None:
                return await self._run_macro(macro, args)
        logger.debug(f"No command or macro matches: {line}")
        return None

    def _is_known_line(self, line: str) -> bool:
        tokens = resolve_constants(tokenize(line), self._constants)
        if any(match_patterns(c.patterns, tokens) is not None for c in self._commands):
            return True
        return any(match_pattern(m.pattern, tokens) is not None for m in self._macros)

    # ------------------------------------------------------------------
    # Macros
    # ------------------------------------------------------------------

    def _begin_macro(self, template: str) -> str:
        if self.find_macro(macro_name(compile_pattern(template))) is not None:
            return MACRO_EXISTS
        self._state = RecordingMacro(template)
        return MACRO_INTRO

    def _record_macro_line(self, state: RecordingMacro, parsed: ParsedLine) -> Optional[str]:
        if parsed.kind is LineKind.end:
            macro = Macro.from_template(state.template, state.lines)
            self._macros.append(macro)
            self._state = Idle()
            logger.info(f"Added macro '{macro.name}' with {len(macro.lines)} lines")
            return MACRO_ADDED.format(name=macro.name)
        if self._is_known_line(parsed.text):
            state.lines.append(parsed.text)
            return None
        return INVALID_MACRO_LINE

    async def _run_macro(self, macro: Macro, args: Dict[str, Value]) -> List[Any]:
        self._macro_stack.append(macro.name)
        try:
            results: List[Any] = []
            for sub_command in macro.lines:
                tokens = resolve_constants(tokenize(sub_command), self._constants)
                tokens = bind_arguments(tokens, args)
                line = substitute_args(sub_command, args)
                results.append(await self._dispatch(line, tokens))
            return results
        finally:
            self._macro_stack.pop()

    # ------------------------------------------------------------------
    # Constants
    # ------------------------------------------------------------------

    def _begin_constants(self) -> str:
        script = self.current_script
        self._pending.setdefault(script, {})
        self._state = RecordingConstants(script)
        return CONSTANTS_INTRO

    async def _record_constants_line(
        self, state: RecordingConstants, parsed: ParsedLine
    ) -> Any:
        pending = self._pending.setdefault(state.script, {})
        if parsed.kind is LineKind.end:
            del self._pending[state.script]
            self._state = Idle()
            # An import inside this block may have committed the same key meanwhile
            messages: List[str] = []
            committed: List[str] = []
            for key, value in pending.items():
                if key in self._constants:
                    logger.warning(
                        f"Not committing '{key}' from {state.script}: already defined"
                    )
                    messages.append(CONSTANT_EXISTS.format(key=key))
                    continue
                self._constants[key] = value
                committed.append(key)
            keys = ",".join(committed)
            logger.info(f"Committed constants [{keys}] from {state.script}")
            messages.append(CONSTANTS_ADDED.format(keys=keys))
            return "\n".join(messages)
        if parsed.kind is LineKind.import_:
            return await self._import(parsed.fields["name"], parsed.fields["path"], pending)
        if parsed.kind is LineKind.define:
            key = parsed.fields["key"]
            error = self._check_constant_name(key, pending)
            if error:
                return error
            value = parse_constant_value(parsed.fields["value"])
            pending[key] = resolve_token(value, self._constants)
            return None
        return None

    def _check_constant_name(self, key: str, pending: Mapping[str, Value]) -> Optional[str]:
        if not is_constant_name(key):
            return CONSTANT_NAME_RULE
        if key in self._constants or key in pending:
            return CONSTANT_EXISTS.format(key=key)
        return None

    # ------------------------------------------------------------------
    # Scripts and imports
    # ------------------------------------------------------------------

    async def add_script_mode(
        self, extension: str, path: Optional[PathLike]
    ) -> Optional[List[List[Any]]]:
        """Run ``path`` if it is set and carries the ``.extension`` suffix, else return None."""
        if not path or not validate_script(extension, path):
            logger.warning(f"Not a .{extension} script: {path}")
            return None
        return await self.run_script(path)

    async def run_script(self, path: PathLike) -> List[List[Any]]:
        """
        Run a script and return the results of its ``start ... end`` blocks.

        Each block contributes one list holding the result of every line it
        executed. Reading failures raise ``ScriptError``.
        """
        target = str((self.base_dir / Path(path)).resolve())
        if not self._import_stack:
            self._imports = {target: [Path(target).name]}
        return await self._run_nested(target)

    def _resolve_import_path(self, path: str) -> str:
        if self._import_stack:
            base = Path(self._import_stack[-1]).parent
        else:
            base = self.base_dir
        return str((base / path).resolve())

    async def _import(self, name: str, path: str, pending: Dict[str, Value]) -> Any:
        target = self._resolve_import_path(path)
        if is_json_import(target):
            error = self._check_constant_name(name, pending)
            if error:
                return error
            pending[name] = self.reader.read_json(target)
            logger.info(f"Loaded JSON constant '{name}' from {target}")
            return None

        if target in self._imports:
            self._imports[target].append(name)
            logger.info(f"Skipping '{name}': {target} was already imported")
            return []
        self._imports[target] = [name]
        logger.info(f"Importing '{name}' from {target}")
        return await self._run_nested(target)

    async def _run_nested(self, target: str) -> List[List[Any]]:
        lines = self.reader.read_lines(target)
        saved_state = self._state
        self._state = Idle()
        self._import_stack.append(target)
        try:
            return await self._run_lines(lines)
        finally:
            self._import_stack.pop()
            if self._pending.pop(target, None):
                logger.warning(f"Discarding uncommitted constants of {target}")
            if not isinstance(self._state, Idle):
                logger.warning(
                    f"{target} ended in {type(self._state).__name__}; discarding it"
                )
            self._state = saved_state

    async def _run_lines(self, lines: Sequence[str]) -> List[List[Any]]:
        results: List[List[Any]] = []
        block: Optional[List[Any]] = None
        for line in lines:
            parsed = classify_line(line)
            if isinstance(self._state, Idle):
                if parsed.kind is LineKind.block_start and block is None:
                    block = []
                    continue
                if parsed.kind is LineKind.end and block is not None:
                    results.append(block)
                    block = None
                    continue
                if block is None and parsed.kind not in _CONTEXT_OPENERS:
                    logger.debug(f"Skipping line outside of a start block: {line}")
                    continue

            response = await self.send(line)
            if block is not None:
                block.append(response)
                await self._emit(CommandEvent(command=line, response=response))

        if block is not None:
            logger.warning(f"{self.current_script} ended inside a start block")
            results.append(block)
        return results

    async def _emit(self, event: CommandEvent) -> None:
        for listener in list(self._listeners):
            await _resolve(listener(event))
