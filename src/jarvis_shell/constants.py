"""
Constant naming rules and ``$NAME`` reference resolution.

Constants hold either plain text or a structured (JSON-like) value loaded
from a JSON import. A reference that makes up a whole token resolves to the
raw stored value so handlers can receive structured arguments; a reference
embedded in a larger token is replaced by the value's text form.
"""

import json
import re
from typing import Any, Dict, List, Mapping, Sequence, Union

JSONValue = Union[Dict[str, Any], List[Any], int, float, bool, None]
Value = Union[str, JSONValue]

_NAME_RE = re.compile(r"^[A-Z_][0-9A-Z_]*$")
_REFERENCE_RE = re.compile(r"\$([A-Z_][0-9A-Z_]*)(?!\w)")


def is_constant_name(key: str) -> bool:
    """Constant names are upper case letters, digits and underscores."""
    return bool(_NAME_RE.match(key))


def stringify(value: Value) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def parse_constant_value(text: str) -> str:
    """Strip one pair of surrounding double quotes from a definition value."""
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def resolve_text(text: str, constants: Mapping[str, Value]) -> str:
    """Replace every defined ``$NAME`` in ``text``; unknown references stay verbatim."""

    def _replace(match: "re.Match[str]") -> str:
        key = match.group(1)
        if key in constants:
            return stringify(constants[key])
        return match.group(0)

    return _REFERENCE_RE.sub(_replace, text)


def resolve_token(token: Value, constants: Mapping[str, Value]) -> Value:
    if not isinstance(token, str):
        return token
    whole = _REFERENCE_RE.fullmatch(token)
    if whole and whole.group(1) in constants:
        return constants[whole.group(1)]
    return resolve_text(token, constants)


def resolve_constants(
    tokens: Sequence[Value], constants: Mapping[str, Value]
) -> List[Value]:
    """Resolve constant references token by token."""
    return [resolve_token(token, constants) for token in tokens]
