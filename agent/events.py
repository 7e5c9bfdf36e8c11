"""
Event definitions for the fix cycle.

Every user-visible step of a cycle is emitted as an event. The console layer
renders them; tests inspect the recorded list instead of scraping terminal
output.

Event types are string constants to keep them JSON-serializable.
"""

from dataclasses import dataclass, field, asdict
from typing import Any
import time


# --- Event type constants ---
STEP = "step"
FILE_PREVIEW = "file_preview"
TESTS_PASSED = "tests_passed"
TEST_FAILURE = "test_failure"
PROPOSAL = "proposal"
CHANGES_APPLIED = "changes_applied"
CHANGES_DECLINED = "changes_declined"
WATCHING = "watching"
FILE_CHANGED = "file_changed"

_PREVIEW_LINES = 5


@dataclass
class CycleEvent:
    """
    Base event structure emitted by the fix cycle and the change trigger.

    `attempt` counts test runs within one cycle (manual re-runs increment it).
    """
    type: str
    message: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    attempt: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# --- Constructor helpers ---

def step_event(message: str, attempt: int = 0, **payload) -> CycleEvent:
    return CycleEvent(type=STEP, message=message, attempt=attempt, payload=payload)


def file_preview_event(path: str, content: str, attempt: int = 0) -> CycleEvent:
    lines = content.splitlines()
    preview = "\n".join(lines[:_PREVIEW_LINES]).strip()
    return CycleEvent(
        type=FILE_PREVIEW,
        message="File Contents",
        attempt=attempt,
        payload={
            "path": path,
            "preview": preview,
            "truncated": len(lines) > _PREVIEW_LINES,
        },
    )


def tests_passed_event(command: str, attempt: int = 0) -> CycleEvent:
    return CycleEvent(
        type=TESTS_PASSED,
        message="All tests passed!",
        attempt=attempt,
        payload={"command": command},
    )


def test_failure_event(failure_text: str, returncode: int, attempt: int = 0) -> CycleEvent:
    return CycleEvent(
        type=TEST_FAILURE,
        message="Test Error",
        attempt=attempt,
        payload={"failure_text": failure_text, "returncode": returncode},
    )


def proposal_event(segments: list[dict], attempt: int = 0) -> CycleEvent:
    return CycleEvent(
        type=PROPOSAL,
        message="Suggested Response",
        attempt=attempt,
        payload={"segments": segments},
    )


def changes_applied_event(path: str, attempt: int = 0) -> CycleEvent:
    return CycleEvent(
        type=CHANGES_APPLIED,
        message=f"Changes written to {path}",
        attempt=attempt,
        payload={"path": path},
    )


def changes_declined_event(attempt: int = 0) -> CycleEvent:
    return CycleEvent(type=CHANGES_DECLINED, message="Changes not applied", attempt=attempt)


def watching_event(pattern: str) -> CycleEvent:
    return CycleEvent(type=WATCHING, message="Watching for changes...", payload={"pattern": pattern})


def file_changed_event(paths: list[str]) -> CycleEvent:
    return CycleEvent(type=FILE_CHANGED, message="File change detected...", payload={"paths": paths})
