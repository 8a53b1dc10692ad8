"""
Shared plumbing for DerivDesk management commands.

Async commands run their service calls under one event loop, report
provider and configuration failures as CommandError, and share the option
parsing used by the position enrichment commands.
"""

import asyncio
import logging

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from services.core.exceptions import DerivDeskError

# Loggers quieted unless --verbose is given
COMMAND_LOG_LEVELS = {
    "services": logging.WARNING,
    "derivatives": logging.WARNING,
    "httpx": logging.ERROR,
    "httpcore": logging.ERROR,
    "asyncio": logging.WARNING,
}


class AsyncCommand(BaseCommand):
    """
    Base class for commands that call the async service layer.

    Subclasses implement ``async_handle``. Service-layer failures
    (``ProviderError``, ``ConfigurationError`` and the rest of the
    ``DerivDeskError`` family) surface as ``CommandError`` so the command
    exits non-zero with the service's message instead of a traceback.

    Example:
        class Command(AsyncCommand):
            async def async_handle(self, *args, **options):
                chain = await get_option_chain_service().get_chain("IBIT", expiration)
                self.stdout.write(f"{len(chain.contracts)} contracts")
    """

    async def async_handle(self, *args, **options):
        raise NotImplementedError(f"{self.__class__.__name__} must implement async_handle()")

    def handle(self, *args, **options):
        try:
            return asyncio.run(self.async_handle(*args, **options))
        except DerivDeskError as e:
            raise CommandError(str(e)) from e
        except KeyboardInterrupt:
            self.stdout.write(self.style.WARNING("\nOperation cancelled by user."))
            return None


def add_verbose_argument(parser):
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output (DEBUG level for all loggers)",
    )


def add_enrichment_arguments(parser):
    """Options shared by commands that run the position enrichment pipeline."""
    parser.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Seconds to wait for option chains before giving up on the rest",
    )
    parser.add_argument(
        "--include-unmatched",
        action="store_true",
        help="Show options without market data (marked at cost)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the enrichment result as JSON",
    )
    add_verbose_argument(parser)


def resolve_deadline(options: dict) -> float | None:
    """
    Deadline for one enrichment pass: --deadline, else ENRICHMENT_DEADLINE_SECONDS.

    Raises:
        CommandError: The resolved deadline is zero or negative
    """
    deadline = options.get("deadline")
    if deadline is None:
        deadline = getattr(settings, "ENRICHMENT_DEADLINE_SECONDS", None)
    if deadline is not None and deadline <= 0:
        raise CommandError("--deadline must be positive")
    return deadline


def configure_command_logging(options: dict, custom_levels: dict | None = None) -> None:
    """
    Quiet service and HTTP client loggers so command output stays readable.

    With ``verbose`` set in options the root logger goes to DEBUG and nothing
    is quieted. ``custom_levels`` replaces COMMAND_LOG_LEVELS entirely.
    """
    if options.get("verbose", False):
        logging.getLogger().setLevel(logging.DEBUG)
        return

    levels = custom_levels if custom_levels is not None else COMMAND_LOG_LEVELS
    for logger_name, level in levels.items():
        logging.getLogger(logger_name).setLevel(level)
