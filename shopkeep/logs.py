"""
Logging setup for entry points.

Library modules only call ``logging.getLogger(__name__)``; handlers are
installed here, once, by the API factory or the CLI.
"""

from __future__ import annotations

import logging

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    global _configured
    root = logging.getLogger("shopkeep")
    root.setLevel(level)
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(FORMAT))
    root.addHandler(handler)
    _configured = True


__all__ = ("configure_logging", "FORMAT")
