"""
Outcome reporting: the single place where a pull outcome becomes user-facing
text and an exit code.
"""
from rich.console import Console
from rich.markup import escape

from sifpull.internal.constants import FATAL_EXIT_CODE
from sifpull.internal.logging import get_logger
from sifpull.kernel.contracts import COMPLETED, UNSIGNED, PullOutcome

logger = get_logger(__name__)

console = Console(stderr=True, soft_wrap=True)


def warning(message: str) -> None:
    console.print(f"[yellow]WARNING:[/yellow] {escape(message)}")


def fatal(message: str) -> None:
    console.print(f"[bold red]FATAL:[/bold red]   {escape(message)}")


def report(outcome: PullOutcome, allow_unsigned: bool = False) -> int:
    """Print whatever the outcome calls for and return the exit code."""
    if outcome.status == COMPLETED:
        return 0

    if outcome.status == UNSIGNED:
        if allow_unsigned:
            logger.info("Unsigned image accepted", dest=str(outcome.destination))
        else:
            warning("Skipping container verification")
        return 0

    message = outcome.error.message if outcome.error is not None else "pull failed"
    fatal(message)
    return FATAL_EXIT_CODE
