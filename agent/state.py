"""
Transient entities of a fix cycle.

Nothing here is persisted: a FixProposal lives until the user accepts or
rejects it (or a newer cycle starts), a CycleOutcome is handed back to the
caller of FixCycle.run() and then dropped.
"""

from dataclasses import dataclass

# --- Terminal statuses of a cycle ---
PASSED = "passed"      # test command exited 0
PROPOSED = "proposed"  # a fix was proposed and the user chose not to re-run


@dataclass
class FixProposal:
    """Replacement file text returned by the completion endpoint."""
    text: str
    provider: str = ""
    model: str = ""
    # -1 when the endpoint does not report usage
    input_tokens: int = -1
    output_tokens: int = -1


@dataclass
class CycleOutcome:
    """Result of FixCycle.run()."""
    status: str
    # Whether the last proposal in this run was written to disk
    applied: bool = False
    # Number of test runs performed (1 + manual re-runs)
    attempts: int = 1
