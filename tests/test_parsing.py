"""Tests for extracting tool-call directives from model text."""

from __future__ import annotations

from ollama_tool_bridge.parsing import (
    extract_tool_calls,
    has_tool_calls,
    normalize_text,
    parse_model_reply,
    validate_tool_call,
)


def test_reply_without_blocks_is_plain_text() -> None:
    parsed = parse_model_reply("The answer is 42.")
    assert parsed.text == "The answer is 42."
    assert parsed.function_calls == []
    assert parsed.diagnostics == []
    assert not parsed.has_calls


def test_single_call_is_extracted_and_removed_from_text() -> None:
    text = (
        "I'll check.\n"
        '<tool_code>{"tool_name": "ls", "parameters": {"path": "/tmp"}}</tool_code>\n'
        "Done."
    )
    parsed = parse_model_reply(text)

    assert [c.name for c in parsed.function_calls] == ["ls"]
    assert parsed.function_calls[0].args == {"path": "/tmp"}
    assert parsed.raw_calls[0].parameters == {"path": "/tmp"}
    assert parsed.text == "I'll check.\n\nDone."


def test_compact_block_trailing_text() -> None:
    parsed = parse_model_reply(
        'List files <tool_code>{"tool_name":"ls","parameters":{"path":"."}}</tool_code>'
    )
    assert parsed.raw_calls[0].name == "ls"
    assert parsed.raw_calls[0].parameters == {"path": "."}
    assert parsed.text == "List files"


def test_multiple_calls_keep_source_order() -> None:
    text = (
        '<tool_code>{"tool_name": "first"}</tool_code>'
        " then "
        '<tool_code>{"tool_name": "second", "parameters": {}}</tool_code>'
    )
    parsed = parse_model_reply(text)
    assert [c.name for c in parsed.function_calls] == ["first", "second"]
    assert parsed.text == "then"


def test_missing_parameters_default_to_empty_object() -> None:
    parsed = parse_model_reply('<tool_code>{"tool_name": "pwd"}</tool_code>')
    assert parsed.function_calls[0].args == {}
    assert parsed.text is None


def test_nested_braces_and_delimiters_inside_strings() -> None:
    text = (
        '<tool_code>{"tool_name": "write", "parameters": '
        '{"content": "x = {\\"a\\": 1} </tool_code> y", "meta": {"k": {"v": 1}}}}'
        "</tool_code>"
    )
    parsed = parse_model_reply(text)

    assert parsed.diagnostics == []
    assert parsed.function_calls[0].args == {
        "content": 'x = {"a": 1} </tool_code> y',
        "meta": {"k": {"v": 1}},
    }


def test_malformed_block_is_skipped_and_left_in_text() -> None:
    bad = "<tool_code>{not json}</tool_code>"
    text = f'{bad}\n<tool_code>{{"tool_name": "ok"}}</tool_code>'
    parsed = parse_model_reply(text)

    assert [c.name for c in parsed.function_calls] == ["ok"]
    assert len(parsed.diagnostics) == 1
    diagnostic = parsed.diagnostics[0]
    assert diagnostic.kind == "malformed_json"
    assert diagnostic.block == bad
    assert diagnostic.position == 0
    assert parsed.text == bad


def test_missing_tool_name_is_diagnosed() -> None:
    parsed = parse_model_reply('<tool_code>{"parameters": {}}</tool_code>')
    assert parsed.function_calls == []
    assert parsed.diagnostics[0].kind == "missing_tool_name"


def test_non_object_payload_is_diagnosed() -> None:
    parsed = parse_model_reply("<tool_code>[1, 2]</tool_code>")
    assert parsed.diagnostics[0].kind == "missing_tool_name"


def test_non_object_parameters_are_diagnosed() -> None:
    parsed = parse_model_reply(
        '<tool_code>{"tool_name": "ls", "parameters": "/tmp"}</tool_code>'
    )
    assert parsed.function_calls == []
    assert parsed.diagnostics[0].kind == "invalid_parameters"


def test_unterminated_block_is_diagnosed() -> None:
    text = 'Working on it <tool_code>{"tool_name": "ls"'
    parsed = parse_model_reply(text)
    assert parsed.function_calls == []
    assert parsed.diagnostics[0].kind == "unterminated_block"
    assert parsed.text == text


def test_normalize_text() -> None:
    assert normalize_text("  a\n\n\n\nb  ") == "a\n\nb"
    assert normalize_text(" \n\n ") is None


def test_helpers() -> None:
    assert validate_tool_call({"tool_name": "x"})
    assert validate_tool_call({"tool_name": "x", "parameters": {"a": 1}})
    assert not validate_tool_call({"tool_name": ""})
    assert not validate_tool_call({"tool_name": "x", "parameters": []})
    assert not validate_tool_call("x")

    text = '<tool_code>{"tool_name": "a"}</tool_code><tool_code>oops</tool_code>'
    assert [c.name for c in extract_tool_calls(text)] == ["a"]
    assert has_tool_calls(text)
    assert not has_tool_calls("<tool_code> never closed")
    assert not has_tool_calls("plain")
