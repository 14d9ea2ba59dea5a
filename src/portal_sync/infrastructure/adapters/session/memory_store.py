from __future__ import annotations

import threading
from datetime import datetime, timezone

from portal_sync.application.ports.session_store_port import CredentialStorePort
from portal_sync.domain.model import CookieSet, CredentialOrigin, CredentialRecord


class CredentialStore(CredentialStorePort):
    """In-memory cookie cache, one record per location. Not persistent.

    Owned by a single coordinator; tests build one per case.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, CredentialRecord] = {}
        self._loads: dict[str, threading.Event] = {}

    def get(self, location_id: str) -> CredentialRecord | None:
        return self._records.get(location_id)

    def set(
        self,
        location_id: str,
        cookies: CookieSet,
        timestamp: datetime,
        origin: CredentialOrigin = CredentialOrigin.MEMORY,
    ) -> CredentialRecord:
        record = CredentialRecord(
            location_id=location_id,
            cookies=cookies,
            last_auth_at=timestamp.astimezone(timezone.utc),
            origin=origin,
        )
        with self._lock:
            self._records[location_id] = record
        return record

    def seed(self, location_id: str, cookies: CookieSet, timestamp: datetime) -> CredentialRecord:
        with self._lock:
            current = self._records.get(location_id)
            if current is not None:
                return current
            record = CredentialRecord(
                location_id=location_id,
                cookies=cookies,
                last_auth_at=timestamp.astimezone(timezone.utc),
                origin=CredentialOrigin.PERSISTED,
            )
            self._records[location_id] = record
            return record

    def claim_load(self, location_id: str) -> bool:
        with self._lock:
            if location_id in self._loads:
                return False
            self._loads[location_id] = threading.Event()
            return True

    def finish_load(self, location_id: str) -> None:
        with self._lock:
            done = self._loads.get(location_id)
        if done is not None:
            done.set()

    def wait_loaded(self, location_id: str, timeout: float | None = None) -> bool:
        with self._lock:
            done = self._loads.get(location_id)
        return done is None or done.wait(timeout)
