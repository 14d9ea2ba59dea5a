from __future__ import annotations

from portal_sync.application.dtos.auth_status_dto import AuthStatusDTO
from portal_sync.application.use_cases.refresh_coordinator import RefreshCoordinator


class GetAuthStatusUseCase:
    """Read-only status: loads and probes the cached cookies, never logs in."""

    def __init__(self, coordinator: RefreshCoordinator) -> None:
        self.coordinator = coordinator

    def execute(self, location_id: str) -> AuthStatusDTO:
        record = self.coordinator.candidate(location_id)
        if record is None or not record.cookies:
            return AuthStatusDTO(
                location_id=location_id,
                authenticated=False,
                cookies_valid=False,
                state=self.coordinator.state(location_id).value,
            )
        valid = self.coordinator.check(location_id, record).valid
        return AuthStatusDTO(
            location_id=location_id,
            authenticated=valid,
            cookies_valid=valid,
            last_auth_at=record.last_auth_at,
            state=self.coordinator.state(location_id).value,
            cookie_count=len(record.cookies),
        )
