"""Logging setup for deploysync.

Provides a single ``setup_logging`` entry point used by the CLI and a
``get_logger`` helper used by every module.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# Third-party loggers that are chatty at DEBUG/INFO.
NOISY_LOGGERS: tuple[str, ...] = ("requests", "urllib3", "kubernetes")


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for the process.

    Args:
        verbose: Emit DEBUG output, including third-party libraries
        quiet: Only emit WARNING and above (ignored when verbose is set)
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    third_party_level = logging.DEBUG if verbose else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
