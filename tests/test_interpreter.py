from typing import Any, Optional

import pytest

from jarvis_shell.commands import CommandContext
from jarvis_shell.interpreter import Interpreter
from jarvis_shell.session import ActiveCommand, Idle


@pytest.mark.asyncio
async def test_basic_command_returns_expected_output() -> None:
    jarvis = Interpreter()
    jarvis.add_command("simple", lambda ctx: "tested: " + ctx.line)
    assert await jarvis.send("simple") == "tested: simple"


@pytest.mark.asyncio
@pytest.mark.parametrize("line", ["foo", "", None])
async def test_unknown_or_empty_input_returns_none(line: Optional[str]) -> None:
    jarvis = Interpreter()
    jarvis.add_command("simple", lambda ctx: "tested")
    assert await jarvis.send(line) is None


@pytest.mark.asyncio
async def test_static_phrases_match_exactly() -> None:
    jarvis = Interpreter()
    jarvis.add_command("how are you", lambda ctx: "I'm fine")
    jarvis.add_command("how are you doing", lambda ctx: "I'm doing well")

    assert await jarvis.send("how are you") == "I'm fine"
    assert await jarvis.send("how are") is None
    assert await jarvis.send("how are you doing") == "I'm doing well"


@pytest.mark.asyncio
async def test_handler_receives_tokens_and_args() -> None:
    seen: list[CommandContext] = []

    def handler(ctx: CommandContext) -> str:
        seen.append(ctx)
        return f"Hello {ctx.args['name']}"

    jarvis = Interpreter()
    jarvis.add_command("say hello to $name now", handler)

    assert await jarvis.send('say hello to "John Doe" now') == "Hello John Doe"
    assert seen[0].tokens == ["say", "hello", "to", "John Doe", "now"]
    assert seen[0].args == {"name": "John Doe"}
    assert seen[0].interpreter is jarvis


@pytest.mark.asyncio
async def test_say_scenario() -> None:
    jarvis = Interpreter()
    jarvis.add_command("say $string", lambda ctx: ctx.args["string"])
    assert await jarvis.send('say "Hello World"') == "Hello World"


@pytest.mark.asyncio
async def test_aliases_match() -> None:
    jarvis = Interpreter()
    jarvis.add_command(
        "greet $name",
        lambda ctx: f"Hello {ctx.args['name']}",
        aliases=["hello $name how are you"],
    )
    assert await jarvis.send('greet "John Doe"') == "Hello John Doe"
    assert await jarvis.send('hello "John Doe" how are you') == "Hello John Doe"


@pytest.mark.asyncio
async def test_alias_order_first_declared_wins() -> None:
    jarvis = Interpreter()
    jarvis.add_command("pick $first", lambda ctx: ctx.args, aliases=["pick $second"])
    assert await jarvis.send("pick x") == {"first": "x"}


@pytest.mark.asyncio
async def test_first_registered_command_wins() -> None:
    jarvis = Interpreter()
    jarvis.add_command("open $thing", lambda ctx: "first")
    jarvis.add_command("open door", lambda ctx: "second")
    assert await jarvis.send("open door") == "first"


@pytest.mark.asyncio
async def test_coroutine_handlers_are_awaited() -> None:
    async def handler(ctx: CommandContext) -> str:
        return "async " + str(ctx.args["x"])

    jarvis = Interpreter()
    jarvis.add_command("wait $x", handler)
    assert await jarvis.send("wait 1") == "async 1"


@pytest.mark.asyncio
async def test_decorator_registration() -> None:
    jarvis = Interpreter()

    @jarvis.command("shout $text", "yell $text")
    def shout(ctx: CommandContext) -> str:
        """Shout the text."""
        return str(ctx.args["text"]).upper()

    assert await jarvis.send("yell hey") == "HEY"
    assert jarvis.commands[0].description == "Shout the text."


@pytest.mark.asyncio
async def test_handler_errors_propagate() -> None:
    def broken(ctx: CommandContext) -> Any:
        raise RuntimeError("boom")

    jarvis = Interpreter()
    jarvis.add_command("break", broken)
    with pytest.raises(RuntimeError, match="boom"):
        await jarvis.send("break")


def _repl_handler(ctx: CommandContext) -> Optional[str]:
    jarvis = ctx.interpreter
    if jarvis.active_command is None:
        jarvis.start_command("repl")
        jarvis.set_command_state(status="awaitInput")
        return "Enter input: "
    if jarvis.command_state.get("status") == "awaitInput":
        return "Handled: " + ctx.line
    return None


@pytest.mark.asyncio
async def test_interactive_command_dialogue() -> None:
    jarvis = Interpreter()
    jarvis.add_command("repl", _repl_handler)

    assert await jarvis.send("repl") == "Enter input: "
    assert isinstance(jarvis.state, ActiveCommand)
    assert await jarvis.send("bar") == "Handled: bar"
    # no re-matching while the dialogue is open
    assert await jarvis.send("how to anything") == "Handled: how to anything"
    assert await jarvis.send("..") == "Done with repl."

    assert isinstance(jarvis.state, Idle)
    assert jarvis.command_state == {}
    assert await jarvis.send("bar") is None


@pytest.mark.asyncio
async def test_exit_dialogue_ignores_local_state() -> None:
    jarvis = Interpreter()
    jarvis.add_command("repl", _repl_handler)
    await jarvis.send("repl")
    jarvis.set_command_state(status="somewhere else", depth=3)

    assert await jarvis.send("..") == "Done with repl."
    assert jarvis.active_command is None


@pytest.mark.asyncio
async def test_handler_can_end_dialogue() -> None:
    def ask(ctx: CommandContext) -> str:
        if ctx.interpreter.active_command is None:
            ctx.interpreter.start_command("ask $question")
            return f"{ctx.args['question']}?"
        ctx.interpreter.end_command()
        return f"answer: {ctx.line}"

    jarvis = Interpreter()
    jarvis.add_command("ask $question", ask)

    assert await jarvis.send("ask name") == "name?"
    assert await jarvis.send("JARVIS") == "answer: JARVIS"
    assert isinstance(jarvis.state, Idle)


def test_start_unknown_command_raises() -> None:
    with pytest.raises(ValueError, match="Unknown command"):
        Interpreter().start_command("missing")


def test_set_command_state_requires_dialogue() -> None:
    with pytest.raises(RuntimeError):
        Interpreter().set_command_state(status="x")


def test_find_command_by_name_or_input(jarvis: Interpreter) -> None:
    say = jarvis.find_command("say $string")
    assert say is not None
    assert jarvis.find_command("say hi") is say
    assert jarvis.find_command("nothing here") is None
