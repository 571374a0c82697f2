from __future__ import annotations

import logging

from questquiz.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str | None = None) -> None:
    use_level = (str(level).strip() if level is not None else "") or str(settings.log_level or "INFO").strip()
    logging.basicConfig(level=getattr(logging, use_level.upper(), logging.INFO), format=LOG_FORMAT)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
