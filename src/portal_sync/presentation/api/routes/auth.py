from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel

from portal_sync.application.use_cases.cookie_header import render_cookie_header
from portal_sync.bootstrap import Container
from portal_sync.presentation.api.dependencies import get_container, require_api_key

router = APIRouter(prefix="/v1/auth", tags=["auth"], dependencies=[Depends(require_api_key)])


class RefreshRequest(BaseModel):
    location_id: str


def _location(query_value: str | None, header_value: str | None) -> str:
    location_id = (query_value or header_value or "").strip()
    if not location_id:
        raise HTTPException(status_code=400, detail="location_id is required")
    return location_id


@router.get("/status")
def auth_status(  # type: ignore[misc]
    location_id: str | None = Query(default=None),
    x_location_id: str | None = Header(default=None),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return container.status.execute(_location(location_id, x_location_id)).as_dict()


@router.post("/refresh")
def auth_refresh(  # type: ignore[misc]
    body: RefreshRequest,
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return container.refresh.execute(_location(body.location_id, None)).as_dict()


@router.get("/header")
def auth_header(  # type: ignore[misc]
    location_id: str | None = Query(default=None),
    x_location_id: str | None = Header(default=None),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    # only the shape of the header leaves the service, never the values
    cookies = container.coordinator.get_valid_cookies(_location(location_id, x_location_id))
    return {"cookie_count": len(cookies), "length": len(render_cookie_header(cookies))}
