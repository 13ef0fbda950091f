"""
Legacy three-sheet export extractor.

Sheet order is fixed: policyholders, dependents, receipts. Passes:
1. Policyholders: one pending policy per row, indexed by its linking
   identifier (``uuid`` column, or ``generated-<policy number>``).
2. Dependents: attached through the linking identifier. An unresolved
   dependent is still emitted, unattached.
3. Each policy is reconciled, numbered and priced.
4. Receipts: a Payment per resolved row; unresolved rows and receipts already
   on file are dropped.

Whether unresolved links are also recorded as issues follows
``ImportConfig.legacy_link_policy``. The only fatal condition is the sheet
count.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from intake.errors import FormatError, LinkResolutionFailure, RowValidationError
from intake.extractors.base import BaseExtractor, ExtractOutput
from intake.logger import get_logger
from intake.mapping import LinkFailurePolicy, SheetKind
from intake.models import Participant, Policyholder, Relationship
from intake.normalizers import DataCleaner, DateParser
from intake.rules import premium_mismatch
from intake.workbook import Sheet, Workbook

logger = get_logger(__name__)


@dataclass
class _PendingPolicy:
    policy_number: str
    link_id: str
    row: int
    fields: Dict[str, Any]
    participants: List[Participant] = field(default_factory=list)
    reported_total: Optional[float] = None

    @property
    def has_self(self) -> bool:
        return any(p.relationship == Relationship.SELF for p in self.participants)


class LegacyExtractor(BaseExtractor):
    source_format = "legacy"

    def extract(self, workbook: Workbook) -> ExtractOutput:
        expected = self.cfg.legacy_sheet_count
        if len(workbook.sheets) != expected:
            raise FormatError(
                f"Legacy workbook must contain exactly {expected} sheets, found {len(workbook.sheets)}",
                context={"sheets": [s.name for s in workbook.sheets]},
            )
        policy_sheet, dependent_sheet, receipt_sheet = workbook.sheets
        out = ExtractOutput()

        pending = self._read_policies(policy_sheet)
        logger.info("Legacy policyholders: %d rows accepted from %s", len(pending), policy_sheet.name)
        self._read_dependents(dependent_sheet, pending, out)

        holders_by_link: Dict[str, Policyholder] = {}
        for link_id, policy in pending.items():
            with self.ctx.collector.row_guard(policy_sheet.name, policy.row):
                holder = self._finalize(policy, policy_sheet.name, out)
                holders_by_link[link_id] = holder

        self._read_receipts(receipt_sheet, holders_by_link, out)
        logger.info(
            "Legacy import done: %d policyholders, %d unattached dependents, %d payments",
            len(out.policyholders), len(out.unattached), len(out.payments),
        )
        return out

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _mapping(self, sheet: Sheet, kind: SheetKind, positions: Dict[str, int]) -> Dict[str, Any]:
        mapper = self.ctx.mapper
        if sheet.keyed:
            return mapper.map_keys(sheet.headers, kind)
        mapping = mapper.map_headers(sheet.headers, kind)
        return mapper.with_positional_fallback(mapping, positions, sheet.width)

    def _link_policy_records(self) -> bool:
        return self.cfg.legacy_link_policy == LinkFailurePolicy.RECORD

    # ------------------------------------------------------------------
    # Pass 1: policyholders
    # ------------------------------------------------------------------

    def _read_policies(self, sheet: Sheet) -> Dict[str, _PendingPolicy]:
        mapping = self._mapping(sheet, SheetKind.POLICIES, self.cfg.legacy_policy_positions)
        pending: Dict[str, _PendingPolicy] = {}
        seen_numbers: set = set()
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                policy = self._policy_row(row, mapping, row_number)
                if policy.policy_number in seen_numbers:
                    raise RowValidationError(f"Duplicate policy number {policy.policy_number} in sheet")
                if policy.link_id in pending:
                    raise RowValidationError(f"Duplicate linking identifier {policy.link_id} in sheet")
                seen_numbers.add(policy.policy_number)
                pending[policy.link_id] = policy
        return pending

    def _policy_row(self, row, mapping, row_number: int) -> _PendingPolicy:
        classifiers = self.ctx.classifiers
        policy_number = DataCleaner.normalize_key(self.cell(row, mapping, "policy_number"))
        if not policy_number:
            raise RowValidationError("Missing policy number")
        link_id = self.text(row, mapping, "uuid") or f"generated-{policy_number}"

        person = self.participant(row, mapping, Relationship.SELF, row_number)
        person = person.model_copy(update={"link_id": link_id})
        street, town = DataCleaner.split_address(self.cell(row, mapping, "address"))
        inception = self.iso_date(row, mapping, "inception_date") or self.ctx.now.date().isoformat()
        cover = self.iso_date(row, mapping, "cover_date") or DateParser.add_months(
            inception, self.cfg.cover_offset_months
        )

        fields: Dict[str, Any] = {
            "link_id": link_id,
            "first_name": person.first_name,
            "surname": person.surname,
            "national_id": person.national_id,
            "date_of_birth": person.date_of_birth,
            "gender": person.gender,
            "phone": person.phone,
            "email": person.email,
            "street_address": street,
            "town": town,
            "postal_address": self.text(row, mapping, "postal_address"),
            "status": classifiers.status.classify(self.cell(row, mapping, "status")),
            "package": classifiers.package.classify(self.cell(row, mapping, "package")),
            "agent_name": self.text(row, mapping, "agent"),
            "inception_date": inception,
            "cover_date": cover,
            "premium_period": self.text(row, mapping, "premium_period"),
            "latest_receipt_date": self.iso_date(row, mapping, "latest_receipt_date") or None,
            "policy_premium": DataCleaner.to_float(self.cell(row, mapping, "policy_premium")) or 0.0,
            "addon_premium": DataCleaner.to_float(self.cell(row, mapping, "addon_premium")) or 0.0,
            "total_premium": DataCleaner.to_float(self.cell(row, mapping, "total_premium")) or 0.0,
            "created_at": self.iso_date(row, mapping, "date_created"),
            "updated_at": self.iso_date(row, mapping, "last_updated"),
        }
        return _PendingPolicy(
            policy_number=policy_number,
            link_id=link_id,
            row=row_number,
            fields=fields,
            participants=[person],
            reported_total=DataCleaner.to_float(self.cell(row, mapping, "total_premium")),
        )

    # ------------------------------------------------------------------
    # Pass 2: dependents
    # ------------------------------------------------------------------

    def _read_dependents(self, sheet: Sheet, pending: Dict[str, _PendingPolicy], out: ExtractOutput) -> None:
        mapping = self._mapping(sheet, SheetKind.DEPENDENTS, self.cfg.legacy_dependent_positions)
        attached = 0
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                relationship = self.ctx.classifiers.relationship.classify(self.cell(row, mapping, "relationship"))
                person = self.participant(row, mapping, relationship, row_number)
                if not person.first_name and not person.surname:
                    raise RowValidationError("Missing dependent name")
                owner = self.text(row, mapping, "subscriber_uuid")
                person = person.model_copy(update={"owner_link_id": owner or None})
                policy = pending.get(owner) if owner else None

                if policy is None:
                    # Emitted without an owner; never attached to a policyholder
                    out.unattached.append(self.ctx.reconciler.with_identity(person))
                    if self._link_policy_records():
                        self.ctx.collector.record(LinkResolutionFailure(owner, row_number, sheet.name), sheet.name)
                    else:
                        logger.debug("Dependent on %s row %d has no owner %r", sheet.name, row_number, owner)
                    continue

                if relationship == Relationship.SELF and policy.has_self:
                    logger.debug("Skipping Self row %d for %s", row_number, policy.policy_number)
                    continue
                policy.participants.append(person)
                attached += 1
        logger.info("Legacy dependents: %d attached, %d unattached", attached, len(out.unattached))

    # ------------------------------------------------------------------
    # Pass 3: reconcile, number, price
    # ------------------------------------------------------------------

    def _finalize(self, policy: _PendingPolicy, sheet: str, out: ExtractOutput) -> Policyholder:
        reconciler = self.ctx.reconciler
        reconciler.claim(policy.policy_number)
        holder, action = reconciler.merge(policy.policy_number, policy.fields, policy.participants, sheet, policy.row)
        holder = self.assign_suffixes(holder)

        priced = self.apply_premium(holder)
        if policy.reported_total is not None and premium_mismatch(
            policy.reported_total, priced, self.cfg.premium_tolerance
        ):
            self.ctx.collector.warn(
                f"Policy {holder.policy_number}: file total premium {policy.reported_total:.2f} "
                f"differs from computed {priced.total_premium:.2f}",
                sheet,
                policy.row,
            )
        # Without recomputation the file's figures stand when it has them
        if self.cfg.recompute_legacy_premiums or policy.reported_total is None:
            holder = priced
        out.add_policy(holder, action)
        return holder

    # ------------------------------------------------------------------
    # Pass 4: receipts
    # ------------------------------------------------------------------

    def _resolve_receipt_owner(self, row, mapping, holders_by_link: Dict[str, Policyholder]) -> Optional[Policyholder]:
        owner = self.text(row, mapping, "subscriber_uuid")
        if owner and owner in holders_by_link:
            return holders_by_link[owner]
        national_id = DataCleaner.normalize_key(self.cell(row, mapping, "subscriber_national_id"))
        if national_id:
            for holder in holders_by_link.values():
                if DataCleaner.normalize_key(holder.national_id) == national_id:
                    return holder
        return None

    def _read_receipts(self, sheet: Sheet, holders_by_link: Dict[str, Policyholder], out: ExtractOutput) -> None:
        mapping = self._mapping(sheet, SheetKind.RECEIPTS, self.cfg.legacy_receipt_positions)
        dropped = 0
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                holder = self._resolve_receipt_owner(row, mapping, holders_by_link)
                if holder is None:
                    dropped += 1
                    if self._link_policy_records():
                        reference = self.text(row, mapping, "subscriber_uuid") or self.text(
                            row, mapping, "subscriber_national_id"
                        )
                        self.ctx.collector.record(LinkResolutionFailure(reference, row_number, sheet.name), sheet.name)
                    continue

                amount = DataCleaner.to_float(self.cell(row, mapping, "amount"))
                if amount is None:
                    raise RowValidationError(f"Unreadable amount {self.text(row, mapping, 'amount')!r}")
                payment_date = self.iso_date(row, mapping, "date")
                system_no = self.text(row, mapping, "system_receipt_number")
                physical_no = self.text(row, mapping, "physical_receipt_number")
                self.add_payment(
                    out, holder, sheet.name, row_number,
                    amount=round(amount, 2),
                    payment_date=payment_date,
                    period=self.text(row, mapping, "payment_period") or DateParser.period_of(payment_date),
                    method=self.ctx.classifiers.payment_method.classify(self.cell(row, mapping, "method")),
                    is_legacy=True,
                    legacy_note=f"System: {system_no}, Physical: {physical_no}",
                    receipt_reference=system_no,
                    created_at=self.iso_date(row, mapping, "created_at") or self.ctx.timestamp,
                )
        if dropped:
            logger.info("Legacy receipts: %d rows had no matching policyholder", dropped)
