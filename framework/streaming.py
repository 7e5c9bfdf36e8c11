"""
Streaming adapter: turns cycle events into terminal output.

Provides:
  - banner formatter for the centred section labels
  - diff renderer (green additions, red deletions, grey common text)
  - timeline formatter that reduces an event to a one-line log entry
  - render_event(), which dispatches an event to the right renderer

This layer is stateless: it renders events without buffering them.
The reporter in framework.console owns the consoles.
"""

from typing import Any

from rich.console import Console
from rich.text import Text

from agent.diff import ADDED, REMOVED
from agent.events import (
    STEP,
    FILE_PREVIEW,
    TESTS_PASSED,
    TEST_FAILURE,
    PROPOSAL,
    CHANGES_APPLIED,
    CHANGES_DECLINED,
    WATCHING,
    FILE_CHANGED,
)

_BANNER_WIDTH = 36

# Banner styles per label kind
MESSAGE_STYLE = "black on bright_blue"
NOTIFY_STYLE = "black on yellow"
SUCCESS_STYLE = "black on green"

_SEGMENT_STYLES = {ADDED: "green", REMOVED: "red"}
_COMMON_STYLE = "grey50"


def banner(text: str, style: str) -> Text:
    """Centre `text` in a fixed-width coloured label."""
    return Text(text.center(_BANNER_WIDTH), style=style)


def diff_text(segments: list[dict[str, Any]]) -> Text:
    out = Text()
    for segment in segments:
        out.append(segment["value"], style=_SEGMENT_STYLES.get(segment["kind"], _COMMON_STYLE))
    return out


def format_event_for_timeline(event: dict[str, Any]) -> str:
    """Convert a single event dict to a one-line log entry."""
    event_type = event.get("type", "unknown")
    message = event.get("message", "")
    attempt = event.get("attempt", 0)
    payload = event.get("payload", {})

    if event_type == TEST_FAILURE:
        return f"[attempt {attempt}] {message} (exit {payload.get('returncode')})"
    if event_type == PROPOSAL:
        segments = payload.get("segments", [])
        changed = sum(len(s["value"]) for s in segments if s["kind"] in _SEGMENT_STYLES)
        return f"[attempt {attempt}] {message} ({changed} chars changed)"
    if event_type == FILE_CHANGED:
        return f"{message} {', '.join(payload.get('paths', []))}"
    return f"[attempt {attempt}] {message}" if attempt else message


def render_event(event: dict[str, Any], console: Console, err_console: Console) -> None:
    """Write one event to the terminal."""
    event_type = event.get("type")
    payload = event.get("payload", {})

    if event_type == FILE_PREVIEW:
        console.print(banner(event["message"], MESSAGE_STYLE))
        console.print()
        console.print(payload.get("preview", ""), markup=False, highlight=False)
        if payload.get("truncated"):
            console.print("...")
        console.print()

    elif event_type == TESTS_PASSED:
        console.print(banner(event["message"], SUCCESS_STYLE))

    elif event_type == TEST_FAILURE:
        console.print(banner(event["message"], MESSAGE_STYLE))
        console.print()
        console.print(payload.get("failure_text", "").strip(), markup=False, highlight=False)
        console.print()

    elif event_type == PROPOSAL:
        console.print(banner(event["message"], MESSAGE_STYLE))
        console.print()
        err_console.print(diff_text(payload.get("segments", [])), highlight=False)
        console.print()

    elif event_type in (WATCHING, FILE_CHANGED):
        if event_type == FILE_CHANGED:
            console.print()
        console.print(banner(event["message"], NOTIFY_STYLE))

    elif event_type == CHANGES_APPLIED:
        console.print(Text(event["message"], style="green"), highlight=False)

    elif event_type in (STEP, CHANGES_DECLINED):
        console.print(Text(event["message"], style="dim"), highlight=False)
