# datamodel/core/logging.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from celine.datamodel.core.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def setup_logging(level: Optional[str] = None, stream=None) -> None:
    """
    Configure logging for embedding applications and scripts.

    Import diagnostics (skipped constraints, recovered statements, unknown
    custom properties) are emitted at WARNING under `celine.datamodel`;
    mapping details at DEBUG.
    """
    name = (level or get_settings().log_level).upper()
    app_level = getattr(logging, name, logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    # ------------------------------------------------------------------
    # Root logger
    # ------------------------------------------------------------------
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.INFO)
    root.addHandler(handler)

    # ------------------------------------------------------------------
    # Engine logs
    # ------------------------------------------------------------------
    logging.getLogger("celine.datamodel").setLevel(app_level)

    # sqlglot warns on every unsupported construct it tokenizes
    logging.getLogger("sqlglot").setLevel(logging.ERROR)
