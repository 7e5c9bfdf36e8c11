"""
Tests for the prompt loader and template rendering.
"""

import pytest
from llm.prompt_loader import PROMPT_PATH, get_system_prompt, render_template


def test_prompt_file_ships_with_package():
    assert PROMPT_PATH.name == "fixer.yaml"
    assert PROMPT_PATH.is_file()


def test_get_system_prompt():
    prompt = get_system_prompt()
    assert prompt.startswith("You are a software developer.")
    assert "no explanation" in prompt
    assert "markdown" in prompt
    # folded into a single line
    assert "\n" not in prompt


def test_render_fix_template():
    rendered = render_template(
        "fix",
        {"failure_text": "AssertionError: 1 != 2", "source": "x = 1"},
    )
    assert rendered == "Failing Test:\nAssertionError: 1 != 2\n\nFile:\nx = 1"


def test_render_template_keeps_braces_in_values():
    source = "function f() { return {a: 1}; }"
    rendered = render_template("fix", {"failure_text": "boom", "source": source})
    assert rendered.endswith(source)


def test_render_template_missing_variable_shows_marker():
    rendered = render_template("fix", {"failure_text": "boom"})
    assert "<MISSING:source>" in rendered


def test_render_template_invalid_key():
    with pytest.raises(KeyError, match="fix"):
        render_template("nonexistent_template", {})
