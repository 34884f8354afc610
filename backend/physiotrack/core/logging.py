from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(LOG_FORMAT))


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach the stream handler to the ``physiotrack`` logger tree.

    Calling it again only adjusts the level, so reloads under uvicorn do not
    duplicate output.
    """
    root = logging.getLogger("physiotrack")
    root.setLevel(level.upper())
    if _handler not in root.handlers:
        root.addHandler(_handler)
    return root
