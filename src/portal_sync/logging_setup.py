from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(threadName)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    # httpx logs every request at INFO, including probe URLs
    logging.getLogger("httpx").setLevel(logging.WARNING)
