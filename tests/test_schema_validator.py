"""
Tests for chat-completion response validation and content extraction.
"""

import pytest
from llm.schema_validator import (
    CompletionResponseError,
    extract_message_content,
    extract_usage,
)


def _body(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def test_extracts_first_choice_content():
    body = {
        "choices": [
            {"message": {"content": "first"}},
            {"message": {"content": "second"}},
        ]
    }
    assert extract_message_content(body) == "first"


def test_content_is_stripped():
    assert extract_message_content(_body("\n  def f(): pass\n\n")) == "def f(): pass"


def test_content_is_otherwise_verbatim():
    # fences are not removed: the system prompt forbids them, nothing more
    raw = "```python\nx = 1\n```"
    assert extract_message_content(_body(raw)) == raw


def test_missing_choices_raises():
    with pytest.raises(CompletionResponseError):
        extract_message_content({"error": {"message": "invalid api key"}})


def test_empty_choices_raises():
    with pytest.raises(CompletionResponseError):
        extract_message_content({"choices": []})


def test_missing_message_content_raises():
    with pytest.raises(CompletionResponseError) as excinfo:
        extract_message_content({"choices": [{"message": {"role": "assistant"}}]})
    assert "choices/0/message" in str(excinfo.value)


def test_null_content_raises():
    with pytest.raises(CompletionResponseError):
        extract_message_content(_body(None))


def test_non_object_body_raises():
    with pytest.raises(CompletionResponseError):
        extract_message_content(["not", "an", "object"])


def test_usage_reported():
    body = _body("x")
    body["usage"] = {"prompt_tokens": 12, "completion_tokens": 3}
    assert extract_usage(body) == (12, 3)


def test_usage_missing():
    assert extract_usage(_body("x")) == (-1, -1)


def test_usage_null_counts_fall_back():
    body = _body("x")
    body["usage"] = {"prompt_tokens": None, "completion_tokens": 7}
    assert extract_usage(body) == (-1, 7)


def test_usage_not_an_object():
    body = _body("x")
    body["usage"] = None
    assert extract_usage(body) == (-1, -1)
