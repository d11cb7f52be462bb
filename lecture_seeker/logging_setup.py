from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the root logger. Entrypoints only."""
    root = logging.getLogger()
    root.setLevel(level)
    if any(getattr(h, "_lecture_seeker", False) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler._lecture_seeker = True  # type: ignore[attr-defined]
    root.addHandler(handler)
