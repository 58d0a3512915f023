"""
Logging utilities for the FastAPI application and the analysis orchestrator.

Background enrichment failures are only ever reported through these loggers,
so the format keeps the emitting module name visible.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a consistent line format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # The Gemini SDK logs every HTTP round trip at INFO through httpx.
    logging.getLogger("httpx").setLevel(max(logging.WARNING, logging.root.level))


__all__ = ["configure_logging"]
