"""
Shape check for chat-completion responses.

The replacement file is taken verbatim from the assistant message, so the
only thing validated is that the message exists:
  1. The body is a JSON object with a non-empty `choices` array
  2. The first choice carries `message.content` as a string
  3. Anything else raises a typed exception the entry point reports as fatal
"""

from typing import Any

import jsonschema
from jsonschema import ValidationError as JsonSchemaValidationError

CHAT_COMPLETION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["choices"],
    "properties": {
        "choices": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["message"],
                "properties": {
                    "message": {
                        "type": "object",
                        "required": ["content"],
                        "properties": {"content": {"type": "string"}},
                    },
                },
            },
        },
        "usage": {"type": "object"},
    },
}


class CompletionResponseError(Exception):
    """Raised when the completion endpoint returns an unusable body."""

    def __init__(self, message: str, body: Any = None) -> None:
        super().__init__(message)
        self.body = body


def extract_message_content(body: Any) -> str:
    """
    Return the first choice's message content, stripped of surrounding whitespace.

    Raises:
        CompletionResponseError: if the body does not match the chat-completion shape.
    """
    try:
        jsonschema.validate(instance=body, schema=CHAT_COMPLETION_SCHEMA)
    except JsonSchemaValidationError as exc:
        path = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise CompletionResponseError(
            f"Malformed completion response at {path}: {exc.message}",
            body=body,
        ) from exc

    return body["choices"][0]["message"]["content"].strip()


def extract_usage(body: dict[str, Any]) -> tuple[int, int]:
    """Return (prompt_tokens, completion_tokens); -1 where not reported."""
    usage = body.get("usage")
    if not isinstance(usage, dict):
        return -1, -1
    return _token_count(usage, "prompt_tokens"), _token_count(usage, "completion_tokens")


def _token_count(usage: dict[str, Any], key: str) -> int:
    value = usage.get(key)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return -1
