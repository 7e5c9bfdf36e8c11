"""
Character-level diff between the current file and a fix proposal.

Segments come out in document order. For a replaced span the removed text
precedes the added text, so joining common+removed segments rebuilds the
original and joining common+added segments rebuilds the proposal.
"""

import difflib
from dataclasses import dataclass, asdict

COMMON = "common"
ADDED = "added"
REMOVED = "removed"


@dataclass
class DiffSegment:
    value: str
    kind: str = COMMON

    @property
    def added(self) -> bool:
        return self.kind == ADDED

    @property
    def removed(self) -> bool:
        return self.kind == REMOVED

    def to_dict(self) -> dict:
        return asdict(self)


def diff_chars(original: str, proposed: str) -> list[DiffSegment]:
    """Return the character diff of `original` -> `proposed` as segments."""
    # autojunk would treat frequent characters (spaces, newlines) as noise
    matcher = difflib.SequenceMatcher(None, original, proposed, autojunk=False)
    segments: list[DiffSegment] = []

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append(segments, original[i1:i2], COMMON)
        elif tag == "delete":
            _append(segments, original[i1:i2], REMOVED)
        elif tag == "insert":
            _append(segments, proposed[j1:j2], ADDED)
        else:  # replace
            _append(segments, original[i1:i2], REMOVED)
            _append(segments, proposed[j1:j2], ADDED)

    return segments


def _append(segments: list[DiffSegment], value: str, kind: str) -> None:
    if not value:
        return
    if segments and segments[-1].kind == kind:
        segments[-1].value += value
    else:
        segments.append(DiffSegment(value=value, kind=kind))


def reconstruct(segments: list[DiffSegment], side: str) -> str:
    """Rebuild one side of a diff: side is 'original' or 'proposed'."""
    skip = ADDED if side == "original" else REMOVED
    return "".join(s.value for s in segments if s.kind != skip)
