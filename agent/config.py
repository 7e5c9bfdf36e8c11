"""
Run configuration for a gptdd session.

The four run settings come from the command line and are bound once at
startup. Everything else (endpoint, model, timeout, log level) follows the
environment-variable convention used by the providers, so the same CLI works
against OpenAI, a local OpenAI-compatible server, or the offline mock.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# Environment-level settings; CLI flags never fall back to these
LOG_LEVEL = os.environ.get("GPTDD_LOG_LEVEL", "WARNING").upper()

# (attribute, flag) in the order they are reported when missing
_REQUIRED_FLAGS = (
    ("test_to_run", "--testToRun"),
    ("file_to_fix", "--fileToFix"),
    ("api_key", "--apiKey"),
)


class ConfigurationError(ValueError):
    """Raised for a missing flag or an unusable watch pattern. Always fatal."""


@dataclass(frozen=True)
class RunConfiguration:
    """Immutable input for one process invocation."""
    test_to_run: str = ""
    file_to_fix: str = ""
    api_key: str = ""
    # Glob of files to watch; empty disables the change trigger
    watch_files: str = ""

    @classmethod
    def from_options(cls, options) -> "RunConfiguration":
        """Build from an argparse namespace (or anything with the same attributes)."""
        return cls(
            test_to_run=(getattr(options, "testToRun", None) or "").strip(),
            file_to_fix=(getattr(options, "fileToFix", None) or "").strip(),
            api_key=(getattr(options, "apiKey", None) or "").strip(),
            watch_files=(getattr(options, "watchFiles", None) or "").strip(),
        )

    def missing_flags(self) -> list[str]:
        return [flag for attr, flag in _REQUIRED_FLAGS if not getattr(self, attr)]

    def validate(self) -> None:
        """Raise ConfigurationError naming the first missing required flag."""
        missing = self.missing_flags()
        if missing:
            raise ConfigurationError(f"{missing[0]} is required")

    @property
    def watch_enabled(self) -> bool:
        return bool(self.watch_files)

    def target_path(self, cwd: Path | None = None) -> Path:
        """Path of the file under repair, resolved against the working directory."""
        return (cwd or Path.cwd()) / self.file_to_fix
