"""Logging configuration for CLI entry points

The engine modules only create module loggers; configuring handlers is the
entry point's job.
"""

from __future__ import annotations

import logging

from decision_engine.config import settings


def setup_logging(verbose: bool = False) -> None:
    """Root logging config (DEBUG when verbose, else settings.LOG_LEVEL)"""
    level = logging.DEBUG if verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
