from __future__ import annotations

import logging

from salesorders.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    global _configured
    resolved = (level or get_settings().log_level).upper()
    if _configured:
        logging.getLogger("salesorders").setLevel(resolved)
        return
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("salesorders").setLevel(resolved)
    _configured = True
