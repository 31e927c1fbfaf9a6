"""
Logging setup.

Modules take their own logger with `logging.getLogger(__name__)`; the app entry point calls
`setup_default_logging()` once so there is a sane default when nothing else configured logging.
"""

from __future__ import annotations

import logging


def setup_default_logging(level: int | str = "INFO") -> None:
    """
    Apply a minimal logging config once.

    No-op when the root logger already has handlers (the host configured logging).
    """
    if isinstance(level, str):
        lvl = getattr(logging, level.upper(), logging.INFO)
    else:
        lvl = int(level)

    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


__all__ = ["setup_default_logging"]
