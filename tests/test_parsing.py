from typing import Any

import pytest

from jarvis_shell.parsing import (
    Slot,
    compile_pattern,
    literal_words,
    match_pattern,
    match_patterns,
    tokenize,
)


def test_tokenize_double_quoted_strings() -> None:
    assert tokenize('hello world "Hello World"') == ["hello", "world", "Hello World"]


def test_tokenize_double_quoted_strings_with_punctuation() -> None:
    assert tokenize('hello world "Hello, World"') == ["hello", "world", "Hello, World"]


def test_tokenize_collapses_whitespace() -> None:
    assert tokenize("  spaced   out ") == ["spaced", "out"]


@pytest.mark.parametrize("line", ["", None])
def test_tokenize_empty_input(line: Any) -> None:
    assert tokenize(line) == []


def test_compile_basic_command() -> None:
    assert compile_pattern("hello $name") == (
        Slot("hello"),
        Slot("name", is_variable=True),
    )


def test_compile_command_with_infix_variable() -> None:
    assert compile_pattern("hello $name how are you") == (
        Slot("hello"),
        Slot("name", is_variable=True),
        Slot("how"),
        Slot("are"),
        Slot("you"),
    )


def test_literal_words() -> None:
    assert literal_words(compile_pattern("code $language now")) == ["code", "now"]


@pytest.mark.parametrize(
    "tokens",
    [[], ["say"], ["say", "hello", "there"], ["say", "a", "b", "c"]],
)
def test_token_count_mismatch_never_matches(tokens: list[str]) -> None:
    assert match_pattern(compile_pattern("say $string"), tokens) is None


def test_match_binds_variables_verbatim() -> None:
    pattern = compile_pattern("say hello to $name now")
    tokens = tokenize('say hello to "John Doe" now')
    assert match_pattern(pattern, tokens) == {"name": "John Doe"}


def test_match_literal_mismatch() -> None:
    assert match_pattern(compile_pattern("how to programme"), ["how", "to", "login"]) is None


def test_match_without_variables_returns_empty_args() -> None:
    pattern = compile_pattern("how to programme")
    assert match_pattern(pattern, ["how", "to", "programme"]) == {}


def test_match_passes_structured_tokens_through() -> None:
    value = {"name": "JARVIS"}
    assert match_pattern(compile_pattern("show $thing"), ["show", value]) == {
        "thing": value
    }


def test_match_patterns_first_declared_wins() -> None:
    patterns = [compile_pattern("pick $first"), compile_pattern("pick $second")]
    assert match_patterns(patterns, ["pick", "x"]) == {"first": "x"}


def test_match_patterns_falls_through_to_alias() -> None:
    patterns = [compile_pattern("greet $name"), compile_pattern("hello $name how are you")]
    tokens = tokenize('hello "John Doe" how are you')
    assert match_patterns(patterns, tokens) == {"name": "John Doe"}


def test_match_patterns_no_match() -> None:
    assert match_patterns([compile_pattern("how are you")], ["how", "are"]) is None
