"""
Command-line entry point.

Usage:
    gptdd -t "pytest tests/test_math.py" -f src/math_utils.py -a "$OPENAI_API_KEY"
    gptdd -t "pytest tests/test_math.py" -f src/math_utils.py -a "$OPENAI_API_KEY" -w "src/**/*.py"

Runs one fix cycle. With --watchFiles it keeps watching and restarts the
cycle on every change until interrupted. Any error that is not a failing
test ends the process with exit status 1.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from agent.cancellation import CancellationToken, CycleCancelled
from agent.config import LOG_LEVEL, ConfigurationError, RunConfiguration
from agent.fix_cycle import FixCycle
from agent.trigger import ChangeTrigger

logger = logging.getLogger(__name__)

_EXAMPLE = """\
Example:

  gptdd \\
    -t "pytest tests/test_my_module.py" \\
    -f "src/my_module.py" \\
    -a "your_api_key" \\
    -w "src/**/*.py"
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gptdd",
        description="A CLI tool to fix failing tests using a chat-completion model.",
        epilog=_EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-t", "--testToRun",
        metavar="COMMAND",
        help="The command to run your test suite once (not watch mode).",
    )
    parser.add_argument("-f", "--fileToFix", metavar="FILE", help="The file to edit.")
    parser.add_argument("-a", "--apiKey", metavar="KEY", help="Your OpenAI API key.")
    parser.add_argument(
        "-w", "--watchFiles",
        metavar="GLOB",
        help="A glob of files to watch. Usually the code and test file.",
    )
    return parser


def _configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(name)s %(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


async def entry(config: RunConfiguration, cycle: FixCycle | None = None) -> None:
    """Run a single cycle, or hand over to the change trigger when watching."""
    config.validate()
    cycle = cycle or FixCycle(config)

    if config.watch_enabled:
        await ChangeTrigger(cycle).run()
        return

    try:
        await cycle.run(CancellationToken())
    except CycleCancelled:
        logger.debug("Cycle cancelled")


def main(argv: list[str] | None = None) -> int:
    options = build_parser().parse_args(argv)
    _configure_logging()
    err_console = Console(stderr=True)

    try:
        config = RunConfiguration.from_options(options)
        asyncio.run(entry(config))
    except ConfigurationError as exc:
        err_console.print(Text(str(exc), style="red"))
        return 1
    except KeyboardInterrupt:
        err_console.print("\nStopped.")
        return 130
    except Exception as exc:
        logger.debug("Fatal error", exc_info=True)
        err_console.print(Text.assemble(("Error: ", "red"), str(exc)))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
