import logging

import pytest

from chain_llm.json_utils import parse_brace_span
from chain_llm.json_utils import parse_fenced_block
from chain_llm.json_utils import parse_llm_json_response


def test_parse_plain_json() -> None:
    assert parse_llm_json_response('{"country": "Japan"}') == {"country": "Japan"}


def test_parse_fenced_json_block() -> None:
    text = 'Here you go:\n```json\n{"a": 1, "b": [1, 2]}\n```\nThanks.'
    assert parse_llm_json_response(text) == {"a": 1, "b": [1, 2]}


def test_parse_unlabeled_fence() -> None:
    assert parse_fenced_block('```\n{"ok": true}\n```') == {"ok": True}


def test_parse_brace_scan_with_prose() -> None:
    text = 'The answer is {"a": {"b": 2}} as requested.'
    assert parse_llm_json_response(text) == {"a": {"b": 2}}


def test_whole_text_wins_over_later_strategies() -> None:
    assert parse_llm_json_response('  {"x": "```json {\\"y\\": 1} ```"}  ') == {"x": '```json {"y": 1} ```'}


def test_brace_span_requires_ordered_braces() -> None:
    assert parse_brace_span("} nothing {") is None
    assert parse_brace_span("no braces") is None


def test_non_object_json_is_not_a_result() -> None:
    assert parse_llm_json_response("[1, 2, 3]") is None
    assert parse_llm_json_response("42") is None


def test_no_json_found_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        assert parse_llm_json_response("Just prose, {not json} here.") is None
    assert "Could not parse LLM response as JSON" in caplog.text
