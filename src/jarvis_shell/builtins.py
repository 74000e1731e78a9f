from typing import Any, Dict

from jarvis_shell.commands import CommandContext
from jarvis_shell.constants import Value
from jarvis_shell.interpreter import Interpreter


def register_builtin_commands(interpreter: Interpreter) -> None:
    """Register the commands every jarvis shell starts with."""

    def cmd_say(ctx: CommandContext) -> Value:
        """Repeat the given text."""
        return ctx.args["string"]

    def cmd_help(ctx: CommandContext) -> str:
        """Show the available commands and macros."""
        help_text = "Available Commands:\n\n"
        for command in ctx.interpreter.commands:
            help_text += f"{command.name} - {command.description}\n"
        if ctx.interpreter.macros:
            help_text += "\nMacros:\n\n"
            for macro in ctx.interpreter.macros:
                help_text += f"{macro.template} - {len(macro.lines)} statements\n"
        return help_text

    def cmd_constants(ctx: CommandContext) -> Dict[str, Any]:
        """Show the defined constants."""
        return dict(ctx.interpreter.constants)

    interpreter.add_command("say $string", cmd_say, aliases=["echo $string"])
    interpreter.add_command("help", cmd_help)
    interpreter.add_command("constants", cmd_constants)
