"""
Tokenizer, template compiler and matcher for command lines.

Templates are space separated words; a word prefixed with ``$`` is a
variable that binds exactly one input token, every other word must match
literally:

    compile_pattern("say hello to $name")
    # (Slot("say"), Slot("hello"), Slot("to"), Slot("name", is_variable=True))
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple

VARIABLE_SIGIL = "$"

# A double-quoted span (quotes included) or a run of non-whitespace
_TOKEN_RE = re.compile(r'"[^"]+"|\S+')


@dataclass(frozen=True)
class Slot:
    """One position of a compiled template."""

    value: str
    is_variable: bool = False


Pattern = Tuple[Slot, ...]


def tokenize(line: Optional[str]) -> list[str]:
    """
    Split a line on whitespace, keeping double-quoted spans as single tokens.

    'hello "John Doe"' -> ['hello', 'John Doe']
    """
    if not line:
        return []
    return [token.replace('"', "") for token in _TOKEN_RE.findall(line)]


def compile_pattern(template: str) -> Pattern:
    """Compile a template string into an ordered tuple of slots."""
    slots = []
    for word in template.strip().split(" "):
        if word.startswith(VARIABLE_SIGIL):
            slots.append(Slot(word[len(VARIABLE_SIGIL) :], is_variable=True))
        else:
            slots.append(Slot(word))
    return tuple(slots)


def match_pattern(pattern: Pattern, tokens: Sequence[Any]) -> Optional[Dict[str, Any]]:
    """Return the variables bound by ``pattern`` against ``tokens``, or None."""
    if len(pattern) != len(tokens):
        return None
    args: Dict[str, Any] = {}
    for slot, token in zip(pattern, tokens):
        if slot.is_variable:
            args[slot.value] = token
        elif token != slot.value:
            return None
    return args


def match_patterns(
    patterns: Sequence[Pattern], tokens: Sequence[Any]
) -> Optional[Dict[str, Any]]:
    """
    Try each pattern in order and return the bindings of the first that matches.

    Pattern order is significant: the primary template is tried before its
    aliases, and aliases in the order they were declared.
    """
    for pattern in patterns:
        args = match_pattern(pattern, tokens)
        if args is not None:
            return args
    return None


def literal_words(pattern: Pattern) -> list[str]:
    """Return the literal words of a pattern, in order."""
    return [slot.value for slot in pattern if not slot.is_variable]
