from __future__ import annotations

from portal_sync.application.dtos.auth_status_dto import AuthStatusDTO
from portal_sync.application.use_cases.refresh_coordinator import RefreshCoordinator


class RefreshSessionUseCase:
    """Operator-triggered login. Shares the coordinator's single-flight path."""

    def __init__(self, coordinator: RefreshCoordinator) -> None:
        self.coordinator = coordinator

    def execute(self, location_id: str, *, timeout: float | None = None) -> AuthStatusDTO:
        cookies = self.coordinator.refresh(location_id, timeout=timeout)
        record = self.coordinator.store.get(location_id)
        return AuthStatusDTO(
            location_id=location_id,
            authenticated=True,
            cookies_valid=True,
            last_auth_at=record.last_auth_at if record else None,
            state=self.coordinator.state(location_id).value,
            cookie_count=len(cookies),
        )
