"""
Reconciler: decide insert vs. update against the store snapshot.

Dedup key is the normalised policy number; the normalised national id is the
secondary key used when dependents or receipts point at a stored holder.
Updates keep the stored id, link id and creation timestamp; every other
business field comes from the incoming record.

Payments are append-only. A receipt matching a stored (or already imported)
payment on policy number, date, period and amount is reported and skipped.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from intake.collector import ErrorCollector
from intake.errors import RowValidationError
from intake.logger import get_logger
from intake.models import Participant, Payment, Policyholder, ReconcileAction
from intake.normalizers.data_cleaner import DataCleaner
from intake.reconcile.ids import IdAllocator
from intake.store import PAYMENTS, POLICYHOLDERS, RecordStore, record_key

logger = get_logger(__name__)

_IDENTITY_FIELDS = {"id", "link_id", "created_at"}
_MANAGED_FIELDS = {"participants", "policy_number", "updated_at"}

# Receipts within a cent of a known payment are the same payment
PAYMENT_AMOUNT_TOLERANCE = 0.01


def _completeness(holder: Policyholder) -> int:
    data = holder.model_dump(exclude={"participants"})
    return sum(1 for v in data.values() if v not in (None, "", 0, 0.0)) + len(holder.participants)


def _payment_key(policy_number: Any, payment_date: str, period: str) -> Tuple[str, str, str]:
    return DataCleaner.normalize_key(policy_number), payment_date or "", period or ""


def _name_key(participant: Participant) -> Tuple[str, str, str]:
    return (
        participant.relationship.value,
        DataCleaner.compact(participant.first_name),
        DataCleaner.compact(participant.surname),
    )


class Reconciler:
    def __init__(self, store: RecordStore, ids: IdAllocator, collector: ErrorCollector, now: str):
        self._ids = ids
        self._collector = collector
        self._now = now
        self._by_key: Dict[str, List[Policyholder]] = {}
        self._by_national_id: Dict[str, List[Policyholder]] = {}
        self._claimed: Set[str] = set()
        self._warned: Set[str] = set()
        self._payments: Dict[Tuple[str, str, str], List[float]] = {}
        for holder in store.get_all(POLICYHOLDERS):
            self._by_key.setdefault(record_key(holder), []).append(holder)
            nid = DataCleaner.normalize_key(holder.national_id)
            if nid:
                self._by_national_id.setdefault(nid, []).append(holder)
        for payment in store.get_all(PAYMENTS):
            self.remember_payment(payment)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _canonical(self, key: str, candidates: List[Policyholder], sheet: str, row: Optional[int]) -> Policyholder:
        if len(candidates) == 1:
            return candidates[0]
        chosen = max(candidates, key=lambda h: (h.updated_at or "", _completeness(h), h.id))
        if key not in self._warned:
            self._warned.add(key)
            self._collector.warn(
                f"{len(candidates)} stored records share key {key}; using id {chosen.id}",
                sheet,
                row,
            )
        return chosen

    def find(self, policy_number: Any, sheet: str = "", row: Optional[int] = None) -> Optional[Policyholder]:
        key = DataCleaner.normalize_key(policy_number)
        candidates = self._by_key.get(key) if key else None
        if not candidates:
            return None
        return self._canonical(key, candidates, sheet, row)

    def find_by_national_id(self, national_id: Any, sheet: str = "", row: Optional[int] = None) -> Optional[Policyholder]:
        key = DataCleaner.normalize_key(national_id)
        if not key:
            return None
        candidates = self._by_national_id.get(key)
        if candidates:
            return self._canonical(key, candidates, sheet, row)
        # Policy numbers are derived from national ids
        return self.find(key, sheet, row)

    def resolve(
        self,
        policy_number: Any = None,
        national_id: Any = None,
        sheet: str = "",
        row: Optional[int] = None,
    ) -> Optional[Policyholder]:
        """Primary key first, then the holder's national id."""
        return self.find(policy_number, sheet, row) or self.find_by_national_id(national_id, sheet, row)

    def claim(self, policy_number: str) -> None:
        """Reserve a key for this run; a second claim is a row error."""
        key = DataCleaner.normalize_key(policy_number)
        if key in self._claimed:
            raise RowValidationError(f"Policy number {key} appears more than once in this import")
        self._claimed.add(key)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def _match_participants(
        self,
        incoming: Sequence[Participant],
        existing: Sequence[Participant],
    ) -> List[Participant]:
        by_nid = {DataCleaner.normalize_key(p.national_id): p for p in existing if p.national_id}
        by_name = {_name_key(p): p for p in existing}
        used: Set[int] = set()
        out: List[Participant] = []
        for participant in incoming:
            match = by_nid.get(DataCleaner.normalize_key(participant.national_id)) if participant.national_id else None
            if match is None or match.id in used:
                match = by_name.get(_name_key(participant))
            if match is not None and match.id not in used and match.id is not None:
                used.add(match.id)
                out.append(participant.model_copy(update={"id": match.id, "link_id": match.link_id or participant.link_id}))
            else:
                out.append(self.with_identity(participant))
        return out

    def with_identity(self, participant: Participant) -> Participant:
        """Give a new participant a fresh id (and a link id if it has none)."""
        pid = self._ids.participant()
        return participant.model_copy(update={
            "id": pid,
            "link_id": participant.link_id or str(uuid.uuid4()),
        })

    def merge(
        self,
        policy_number: str,
        fields: Dict[str, Any],
        participants: Sequence[Participant],
        sheet: str = "",
        row: Optional[int] = None,
    ) -> Tuple[Policyholder, ReconcileAction]:
        """
        Build the outgoing policyholder for ``policy_number``.

        ``fields`` are the incoming business fields; identity fields in it are
        only used on insert.
        """
        existing = self.find(policy_number, sheet, row)
        if existing is None:
            holder = Policyholder(
                **{k: v for k, v in fields.items() if k not in _IDENTITY_FIELDS | _MANAGED_FIELDS},
                id=self._ids.policyholder(),
                link_id=fields.get("link_id") or str(uuid.uuid4()),
                policy_number=policy_number,
                participants=[self.with_identity(p) for p in participants],
                created_at=fields.get("created_at") or self._now,
                updated_at=fields.get("updated_at") or self._now,
            )
            logger.debug("Insert policy %s as id %d", policy_number, holder.id)
            return holder, ReconcileAction.INSERT

        update = {k: v for k, v in fields.items() if k not in _IDENTITY_FIELDS | _MANAGED_FIELDS}
        update.update(
            policy_number=policy_number,
            participants=self._match_participants(participants, existing.participants),
            updated_at=self._now,
        )
        holder = existing.model_copy(update=update, deep=True)
        logger.debug("Update policy %s (id %d)", policy_number, holder.id)
        return holder, ReconcileAction.UPDATE

    def extend(self, existing: Policyholder, additions: Sequence[Participant]) -> Policyholder:
        """Merged copy of a stored holder with extra participants added or refreshed."""
        kept = [p for p in existing.participants]
        matched = self._match_participants(additions, kept)
        by_id = {p.id: idx for idx, p in enumerate(kept)}
        for participant in matched:
            if participant.id in by_id:
                kept[by_id[participant.id]] = participant
            else:
                kept.append(participant)
        return existing.model_copy(update={"participants": kept, "updated_at": self._now}, deep=True)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def remember_payment(self, payment: Payment) -> None:
        key = _payment_key(payment.policy_number, payment.payment_date, payment.period)
        self._payments.setdefault(key, []).append(payment.amount)

    def is_duplicate_payment(self, policy_number: str, payment_date: str, period: str, amount: float) -> bool:
        known = self._payments.get(_payment_key(policy_number, payment_date, period), [])
        return any(abs(seen - amount) < PAYMENT_AMOUNT_TOLERANCE for seen in known)
