"""
Recorded macros and macro argument substitution.
"""

import re
from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple

from jarvis_shell.constants import Value, stringify
from jarvis_shell.parsing import Pattern, compile_pattern, literal_words

_VARIABLE_RE = re.compile(r"\$([A-Za-z_]\w*)")


@dataclass(frozen=True)
class Macro:
    """A named sequence of raw sub-command lines replayed with arguments."""

    name: str
    template: str
    pattern: Pattern
    lines: Tuple[str, ...]

    @classmethod
    def from_template(cls, template: str, lines: Sequence[str] = ()) -> "Macro":
        pattern = compile_pattern(template)
        return cls(
            name=macro_name(pattern),
            template=template.strip(),
            pattern=pattern,
            lines=tuple(lines),
        )


def macro_name(pattern: Pattern) -> str:
    """The literal words of a macro template: ``greet $name`` is named ``greet``."""
    return " ".join(literal_words(pattern))


def substitute_args(line: str, args: Mapping[str, Value]) -> str:
    """
    Render a sub-command line with the macro's arguments filled in.

    Values are wrapped in double quotes so a multi-word value still
    tokenizes as one token; unknown variables are left as they are.

    'run $code', {'code': 'Hello World'} -> 'run "Hello World"'
    """

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in args:
            return f'"{stringify(args[name])}"'
        return match.group(0)

    return _VARIABLE_RE.sub(_replace, line)


def bind_token(token: Value, args: Mapping[str, Value]) -> Value:
    if not isinstance(token, str):
        return token
    whole = _VARIABLE_RE.fullmatch(token)
    if whole and whole.group(1) in args:
        return args[whole.group(1)]

    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        return stringify(args[name]) if name in args else match.group(0)

    return _VARIABLE_RE.sub(_replace, token)


def bind_arguments(tokens: Sequence[Value], args: Mapping[str, Value]) -> list[Value]:
    """Substitute macro arguments token by token, keeping raw values whole."""
    return [bind_token(token, args) for token in tokens]
