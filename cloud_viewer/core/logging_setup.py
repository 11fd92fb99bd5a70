# File: cloud_viewer/core/logging_setup.py

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once.

    Repeated calls only adjust the level, so building several apps in one
    process (tests) does not stack handlers.
    """
    root = logging.getLogger()
    lvl = getattr(logging, (level or "INFO").upper(), logging.INFO)

    if getattr(root, "_cloud_viewer_configured", False):
        root.setLevel(lvl)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root.addHandler(handler)
    root.setLevel(lvl)
    root._cloud_viewer_configured = True  # type: ignore[attr-defined]
