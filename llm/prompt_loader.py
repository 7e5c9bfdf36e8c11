"""
Loads the fixer prompt from prompts/fixer.yaml.

The file holds the system instruction and the user message template; it is
parsed once per process.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

PROMPT_PATH = Path(__file__).parent / "prompts" / "fixer.yaml"


class _SafeMap(dict):
    def __missing__(self, key: str) -> str:
        return f"<MISSING:{key}>"


@lru_cache(maxsize=1)
def _load_prompt() -> dict:
    with open(PROMPT_PATH, "r", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def get_system_prompt() -> str:
    """Return the system instruction folded onto one line."""
    return " ".join(_load_prompt().get("system", "").split())


def render_template(template_key: str, variables: dict[str, Any]) -> str:
    """
    Render a named template with the given variables.

    Missing variables render as '<MISSING:variable_name>'. Braces inside
    variable values are left alone.
    """
    templates = _load_prompt().get("templates", {})
    if template_key not in templates:
        raise KeyError(
            f"Template '{template_key}' not found in {PROMPT_PATH.name}. "
            f"Available: {sorted(templates)}"
        )
    return templates[template_key].format_map(_SafeMap(variables))
