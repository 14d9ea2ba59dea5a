from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, Header, HTTPException, status
from prometheus_client import CollectorRegistry

from portal_sync.bootstrap import Container, build_container
from portal_sync.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

registry = CollectorRegistry()


def get_settings() -> Settings:
    return default_settings


@lru_cache(maxsize=1)
def _container() -> Container:
    return build_container(default_settings, registry=registry)


def get_container() -> Container:
    return _container()


def require_api_key(
    x_api_key: str | None = Header(default=None),
    cfg: Settings = Depends(get_settings),
) -> None:
    if not cfg.api_key:
        logger.warning("No API_KEY configured - running in open mode")
        return
    if x_api_key != cfg.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
