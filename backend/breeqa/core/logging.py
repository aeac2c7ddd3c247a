from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once per process. Safe to call from the app
    factory on every create_application().
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(level=(level or "INFO").upper(), format=LOG_FORMAT)
    # SQL echo is controlled by the engine; keep the driver quiet by default
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
