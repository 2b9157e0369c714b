"""
Structured Logging

Every command outcome is logged as one structured event: what ran,
on which entity, and whether it changed the snapshot.

The logger:
- Renders JSON so logs can be grepped and shipped as-is
- Never raises into the ledger
- Supports correlation IDs to trace the events of one command
  (for example a startup catch-up that generates several transactions)
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

_PROCESSORS = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    structlog.processors.JSONRenderer()
]


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Safe to call more than once; the last level wins.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("walletbook").setLevel(level)

    structlog.configure(
        processors=_PROCESSORS,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
configure_logging()


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger under the walletbook namespace."""
    return structlog.get_logger(name or "walletbook")


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a command and bind it to the logger
    for every event the command emits.
    """
    return uuid4()
