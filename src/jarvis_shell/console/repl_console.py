import logging
from dataclasses import dataclass
from typing import Generator, List, Optional

from prompt_toolkit.auto_suggest import AutoSuggest, Suggestion
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.completion import CompleteEvent, Completer, Completion
from prompt_toolkit.document import Document
from prompt_toolkit.filters import has_completions
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.shortcuts import PromptSession
from prompt_toolkit.styles import Style
from rich.panel import Panel

from jarvis_shell.console.rendering import console, render_error, render_result
from jarvis_shell.interpreter import Interpreter
from jarvis_shell.runtime_config import get_data_dir
from jarvis_shell.session import (
    BEGIN_CONSTANTS,
    BEGIN_MACRO,
    END,
    ActiveCommand,
    Idle,
    RecordingConstants,
    RecordingMacro,
)

logger = logging.getLogger(__name__)

EXIT_WORDS = ("exit", "quit")


@dataclass(frozen=True)
class Suggestable:
    """A completion entry: the text to insert and what it does."""

    text: str
    description: str


def _template_prefix(template: str) -> str:
    """Words of a template up to its first variable: 'say $string' -> 'say '."""
    words = []
    for word in template.split(" "):
        if word.startswith("$"):
            return " ".join(words) + " "
        words.append(word)
    return " ".join(words)


class CompletionHandler:
    """Completion and suggestion of command templates, macros and keywords."""

    style: Style = Style.from_dict(
        {
            "prompt": "ansicyan",
            "prompt.state": "ansiyellow bold",
            "completion-menu.completion.current": "reverse",
        }
    )

    def __init__(self, interpreter: Interpreter) -> None:
        self._interpreter = interpreter

    def entries(self) -> List[Suggestable]:
        entries = [
            Suggestable(_template_prefix(c.name), f"{c.name:<24} {c.description}")
            for c in self._interpreter.commands
        ]
        entries += [
            Suggestable(_template_prefix(m.template), f"{m.template:<24} macro")
            for m in self._interpreter.macros
        ]
        entries += [
            Suggestable(f"{BEGIN_MACRO} ", f"{BEGIN_MACRO:<24} record a macro"),
            Suggestable(BEGIN_CONSTANTS, f"{BEGIN_CONSTANTS:<24} define constants"),
            Suggestable(END, f"{END:<24} finish a macro or constants block"),
        ]
        return entries

    @property
    def completer(self) -> Completer:
        handler = self

        class _TemplateCompleter(Completer):
            def get_completions(
                self, document: Document, complete_event: CompleteEvent
            ) -> Generator[Completion, None, None]:
                text = document.text_before_cursor
                if document.cursor_position_row != 0 or not text.strip():
                    return
                for entry in handler.entries():
                    if entry.text.lower().startswith(text.lower()):
                        yield Completion(
                            entry.text,
                            start_position=-len(text),
                            display=entry.description,
                        )

        return _TemplateCompleter()

    @property
    def auto_suggest(self) -> AutoSuggest:
        handler = self

        class _TemplateAutoSuggest(AutoSuggest):
            def get_suggestion(
                self, buffer: Buffer, document: Document
            ) -> Optional[Suggestion]:
                text = document.text
                if len(text) <= 1:
                    return None
                for entry in handler.entries():
                    if (
                        entry.text.lower().startswith(text.lower())
                        and entry.text.lower() != text.lower()
                    ):
                        return Suggestion(entry.text[len(text) :])
                return None

        return _TemplateAutoSuggest()

    @staticmethod
    def on_completions_changed(buf: Buffer) -> None:
        state = buf.complete_state
        if state and state.complete_index is None:
            state.complete_index = 0


class ReplConsole:
    """Console that runs the interactive REPL."""

    interpreter: Interpreter
    prompt_session: Optional[PromptSession[str]]

    def __init__(self, interpreter: Interpreter, history_path: Optional[str] = None) -> None:
        self.interpreter = interpreter
        self.history_path = history_path
        self.prompt_session = None
        self._completion = CompletionHandler(interpreter)

    def _state_label(self) -> str:
        match self.interpreter.state:
            case ActiveCommand(command=command):
                return command.name
            case RecordingMacro():
                return "macro"
            case RecordingConstants():
                return "const"
        return ""

    def prompt_fragments(self) -> FormattedText:
        """Prompt naming the open dialogue, macro or constants block, if any."""
        return FormattedText(
            [
                ("", "\n"),
                ("class:prompt.state", self._state_label()),
                ("class:prompt", "› "),
            ]
        )

    def _get_key_bindings(self) -> KeyBindings:
        """Tab takes a lone candidate or cycles; Enter takes the highlighted one."""
        kb = KeyBindings()

        @kb.add("tab", filter=has_completions)
        def complete_or_cycle(event: KeyPressEvent) -> None:
            buffer = event.current_buffer
            complete_state = buffer.complete_state
            candidates = complete_state.completions if complete_state else []
            if len(candidates) == 1:
                buffer.apply_completion(candidates[0])
            else:
                buffer.complete_next()

        @kb.add("enter", filter=has_completions)
        def take_highlighted(event: KeyPressEvent) -> None:
            buffer = event.current_buffer
            complete_state = buffer.complete_state
            if complete_state and complete_state.current_completion:
                buffer.apply_completion(complete_state.current_completion)
            else:
                buffer.cancel_completion()

        return kb

    def _should_exit(self, user_input: str) -> bool:
        if not isinstance(self.interpreter.state, Idle):
            return False
        return user_input.strip().lower() in EXIT_WORDS

    async def handle(self, user_input: str) -> None:
        """Send one line to the interpreter and render what comes back."""
        try:
            result = await self.interpreter.send(user_input)
        except Exception as e:
            logger.error(f"Error while running '{user_input}'", exc_info=True)
            render_error(e)
            return
        render_result(result)

    def _default_history_path(self) -> str:
        data_dir = get_data_dir()
        data_dir.mkdir(parents=True, exist_ok=True)
        return str(data_dir / "prompt_history")

    async def run(self) -> None:
        """Read lines until exit, end of input or Ctrl-C."""
        console.print(
            Panel(
                "[bold cyan]╭─ JARVIS ─╮[/bold cyan]\n\n"
                f"[dim]Commands:[/dim] [dim cyan]{len(self.interpreter.commands)}[/dim cyan]\n"
                "[dim]Type[/dim] [dim cyan]help[/dim cyan] [dim]to list them,"
                " [/dim][dim cyan]exit[/dim cyan] [dim]to leave.[/dim]",
                expand=False,
            )
        )

        self.prompt_session = PromptSession(
            message=self.prompt_fragments,
            history=FileHistory(self.history_path or self._default_history_path()),
            completer=self._completion.completer,
            auto_suggest=self._completion.auto_suggest,
            style=self._completion.style,
            complete_while_typing=True,
            key_bindings=self._get_key_bindings(),
        )
        if hasattr(self.prompt_session, "default_buffer"):
            self.prompt_session.default_buffer.on_completions_changed += (
                self._completion.on_completions_changed
            )

        try:
            while True:
                user_input = await self.prompt_session.prompt_async()
                if not user_input.strip():
                    continue
                if self._should_exit(user_input):
                    logger.info("Leaving the interactive shell")
                    break
                await self.handle(user_input)
        except (KeyboardInterrupt, EOFError):
            logger.info("Input closed")
