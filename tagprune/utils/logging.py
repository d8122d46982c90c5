"""
Centralized logging configuration.

This module provides a consistent logging setup for tagprune. It configures
Python's standard logging once per process and hands out loggers under the
"tagprune." namespace so that the runner, the git client and the CLI can be
filtered together.

Key features:
- Configure-once guard so repeated CLI callbacks do not stack handlers
- Console output with optional file output
- Verbose mode with logger name and line number
- asyncio debug chatter kept at WARNING
"""

import logging
import sys
from pathlib import Path
from typing import Optional

_CONFIGURED = False

def setup_logging(level: str = "INFO",
                  log_file: Optional[Path] = None,
                  verbose: bool = False
                  ) -> None:
    """
    Configure the global logging system for tagprune.

    Subsequent calls are ignored, which matters for the CLI: typer runs the
    application callback on every invocation and tests invoke it many times
    in one process.

    :param level: Logging level name ("DEBUG", "INFO", ...). Case-insensitive.
    :param log_file: Optional path to also write logs to. Parent directories
                    are created when missing.
    :param verbose: If True, include logger name and line number in each
                   record.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if verbose:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(message)s"

    datefmt = "%Y-%m-%d %H:%M:%S"

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format=fmt,
        datefmt=datefmt,
        handlers=handlers,
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """
    Create a namespaced logger for tagprune components.

    :param name: Component name, e.g. "runner" or "git". The "tagprune."
                prefix is added automatically.
    :return: logging.Logger in the "tagprune." namespace.
    """
    return logging.getLogger(f"tagprune.{name}")
