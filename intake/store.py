"""
Record Store collaborator.

The engine only reads snapshots (``get_all`` / ``get_by_key``) and allocates
ids (``next_id``); committing through ``upsert`` is the caller's job.

Entities:
- ``policyholders``: :class:`Policyholder`, participants nested, keyed by
  normalised policy number
- ``payments``: :class:`Payment`, keyed by owning policy number
- ``participants``: identity sequence only
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, List, Protocol

from pydantic import BaseModel, ValidationError

from intake.errors import PersistenceError
from intake.logger import get_logger
from intake.models import Payment, Policyholder
from intake.normalizers.data_cleaner import DataCleaner

logger = get_logger(__name__)

POLICYHOLDERS = "policyholders"
PAYMENTS = "payments"
PARTICIPANTS = "participants"

ENTITIES = (POLICYHOLDERS, PAYMENTS, PARTICIPANTS)
_RECORD_TYPES = {POLICYHOLDERS: Policyholder, PAYMENTS: Payment}


class RecordStore(Protocol):
    def get_all(self, entity: str) -> List[Any]: ...

    def get_by_key(self, entity: str, key: str) -> List[Any]: ...

    def upsert(self, entity: str, record: Any) -> Any: ...

    def next_id(self, entity: str) -> int: ...


def record_key(record: Any) -> str:
    """Dedup key of a stored record: its normalised policy number."""
    return DataCleaner.normalize_key(getattr(record, "policy_number", ""))


class InMemoryRecordStore:
    """
    Thread-safe in-memory store.

    ``next_id`` hands out ids from a per-entity sequence seeded at
    ``max(existing) + 1``. An id is never handed out twice by the same
    instance, even when several runs allocate concurrently.
    """

    def __init__(
        self,
        policyholders: Iterable[Policyholder] = (),
        payments: Iterable[Payment] = (),
    ):
        self._lock = threading.RLock()
        self._records: Dict[str, Dict[int, BaseModel]] = {POLICYHOLDERS: {}, PAYMENTS: {}}
        self._sequences: Dict[str, int] = {entity: 0 for entity in ENTITIES}
        for holder in policyholders:
            self._put(POLICYHOLDERS, holder)
        for payment in payments:
            self._put(PAYMENTS, payment)

    # ----- internal -------------------------------------------------------

    def _check_entity(self, entity: str, records: bool = True) -> None:
        allowed = _RECORD_TYPES if records else ENTITIES
        if entity not in allowed:
            raise PersistenceError(entity, None, "unknown entity")

    def _bump(self, entity: str, seen_id: Any) -> None:
        if isinstance(seen_id, int) and seen_id >= self._sequences[entity]:
            self._sequences[entity] = seen_id

    def _put(self, entity: str, record: BaseModel) -> None:
        self._records[entity][record.id] = record
        self._bump(entity, record.id)
        if entity == POLICYHOLDERS:
            for participant in record.participants:
                self._bump(PARTICIPANTS, participant.id)

    # ----- RecordStore ----------------------------------------------------

    def get_all(self, entity: str) -> List[Any]:
        self._check_entity(entity)
        with self._lock:
            return [r.model_copy(deep=True) for _, r in sorted(self._records[entity].items())]

    def get_by_key(self, entity: str, key: str) -> List[Any]:
        """Every record whose policy number normalises to ``key``, id ascending."""
        wanted = DataCleaner.normalize_key(key)
        return [r for r in self.get_all(entity) if record_key(r) == wanted]

    def upsert(self, entity: str, record: Any) -> Any:
        self._check_entity(entity)
        record_type = _RECORD_TYPES[entity]
        try:
            model = record if isinstance(record, record_type) else record_type.model_validate(record)
        except ValidationError as exc:
            raise PersistenceError(entity, getattr(record, "id", None), str(exc)) from exc
        if entity == PAYMENTS and model.policyholder_id not in self._records[POLICYHOLDERS]:
            raise PersistenceError(entity, model.id, f"unknown policyholder id {model.policyholder_id}")
        with self._lock:
            self._put(entity, model.model_copy(deep=True))
        return model

    def next_id(self, entity: str) -> int:
        self._check_entity(entity, records=False)
        with self._lock:
            self._sequences[entity] += 1
            return self._sequences[entity]

    # ----- snapshots ------------------------------------------------------

    def to_snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        return {entity: [r.model_dump(mode="json") for r in self.get_all(entity)] for entity in _RECORD_TYPES}

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "InMemoryRecordStore":
        try:
            holders = [Policyholder.model_validate(r) for r in data.get(POLICYHOLDERS) or []]
            payments = [Payment.model_validate(r) for r in data.get(PAYMENTS) or []]
        except ValidationError as exc:
            raise PersistenceError("snapshot", None, str(exc)) from exc
        logger.info("Loaded store snapshot: %d policyholders, %d payments", len(holders), len(payments))
        return cls(holders, payments)
