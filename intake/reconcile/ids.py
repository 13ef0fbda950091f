"""Identity allocation through the record store's own sequence."""

from __future__ import annotations

from intake.store import PARTICIPANTS, PAYMENTS, POLICYHOLDERS, RecordStore


class IdAllocator:
    """Thin wrapper so extractors never compute ids themselves."""

    def __init__(self, store: RecordStore):
        self._store = store

    def policyholder(self) -> int:
        return self._store.next_id(POLICYHOLDERS)

    def participant(self) -> int:
        return self._store.next_id(PARTICIPANTS)

    def payment(self) -> int:
        return self._store.next_id(PAYMENTS)
