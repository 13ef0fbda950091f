"""
Ad-hoc single-sheet policy importer.

Rows are grouped by policy number; each group is one policy whose number is
re-derived from the national id on its Self row (the first row when none is
marked Self). The derived number always wins over the one in the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from intake.errors import FormatError, RowValidationError
from intake.extractors.base import BaseExtractor, ExtractOutput
from intake.logger import get_logger
from intake.mapping import LinkFailurePolicy, SheetKind
from intake.models import Participant, ReconcileAction, Relationship
from intake.normalizers import DataCleaner, DateParser
from intake.workbook import Row, Sheet, Workbook

logger = get_logger(__name__)


class SingleSheetExtractor(BaseExtractor):
    """Common plumbing for the single-sheet upload templates."""

    sheet_kind: SheetKind = SheetKind.POLICIES

    def sheet_of(self, workbook: Workbook) -> Sheet:
        candidates = [s for s in workbook.sheets if not s.is_empty()]
        if not candidates:
            raise FormatError("Workbook has no data rows", context={"sheets": [s.name for s in workbook.sheets]})
        if len(candidates) > 1:
            logger.info("Using first non-empty sheet %r of %d", candidates[0].name, len(workbook.sheets))
        return candidates[0]

    def mapping_of(self, sheet: Sheet) -> Dict[str, Any]:
        if sheet.keyed:
            return self.ctx.mapper.map_keys(sheet.headers, self.sheet_kind)
        return self.ctx.mapper.map_headers(sheet.headers, self.sheet_kind)

    def records_link_failures(self) -> bool:
        return self.cfg.adhoc_link_policy == LinkFailurePolicy.RECORD

    def address(self, row: Row, mapping: Dict[str, Any]) -> Tuple[str, str]:
        street, town = DataCleaner.split_address(self.cell(row, mapping, "address"))
        return self.text(row, mapping, "street_address") or street, self.text(row, mapping, "town") or town

    def named_participant(
        self,
        row: Row,
        mapping: Dict[str, Any],
        relationship: Relationship,
        row_number: int,
    ) -> Participant:
        """A non-holder participant; first name and surname are required."""
        person = self.participant(row, mapping, relationship, row_number)
        missing = [label for label, value in (("first name", person.first_name), ("surname", person.surname)) if not value]
        if missing:
            raise RowValidationError(f"Missing {' and '.join(missing)}; participant skipped")
        return person


@dataclass
class _Group:
    file_number: str
    rows: List[Tuple[int, Row]] = field(default_factory=list)


class AdHocPolicyExtractor(SingleSheetExtractor):
    source_format = "adhoc_policies"
    sheet_kind = SheetKind.POLICIES

    def extract(self, workbook: Workbook) -> ExtractOutput:
        sheet = self.sheet_of(workbook)
        mapping = self.mapping_of(sheet)
        if "national_id" not in mapping:
            logger.warning("Sheet %s has no national id column; every group will be rejected", sheet.name)

        out = ExtractOutput()
        groups = self._group_rows(sheet, mapping)
        for group in groups:
            first_row = group.rows[0][0]
            with self.ctx.collector.row_guard(sheet.name, first_row):
                self._import_group(group, mapping, sheet.name, out)
        logger.info(
            "Ad-hoc policies: %d groups, %d inserted, %d updated",
            len(groups),
            sum(1 for d in out.decisions if d.action == ReconcileAction.INSERT),
            sum(1 for d in out.decisions if d.action == ReconcileAction.UPDATE),
        )
        return out

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def _relationship(self, row: Row, mapping: Dict[str, Any]) -> Relationship:
        # One row per policy when the sheet has no relationship column
        if "relationship" not in mapping:
            return Relationship.SELF
        return self.ctx.classifiers.relationship.classify(self.cell(row, mapping, "relationship"))

    def _group_rows(self, sheet: Sheet, mapping: Dict[str, Any]) -> List[_Group]:
        groups: Dict[str, _Group] = {}
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                key = DataCleaner.normalize_key(self.cell(row, mapping, "policy_number"))
                if not key:
                    national_id = self.cell(row, mapping, "national_id")
                    if self._relationship(row, mapping) != Relationship.SELF or DataCleaner.is_empty(national_id):
                        raise RowValidationError("Missing policy number")
                    key = DataCleaner.derive_policy_number(national_id)
                groups.setdefault(key, _Group(file_number=key)).rows.append((row_number, row))
        return list(groups.values())

    # ------------------------------------------------------------------
    # One policy
    # ------------------------------------------------------------------

    def _import_group(self, group: _Group, mapping: Dict[str, Any], sheet: str, out: ExtractOutput) -> None:
        collector = self.ctx.collector
        holder_idx = next(
            (i for i, (_, row) in enumerate(group.rows) if self._relationship(row, mapping) == Relationship.SELF),
            0,
        )
        holder_row_number, holder_row = group.rows[holder_idx]

        national_id = self.text(holder_row, mapping, "national_id")
        policy_number = DataCleaner.derive_policy_number(national_id)
        if not policy_number:
            raise RowValidationError(
                f"Missing national id on the policyholder row of policy {group.file_number}",
                row=holder_row_number,
            )
        if group.file_number != policy_number:
            collector.warn(
                f"Policy number {group.file_number} in file differs from {policy_number} "
                f"derived from national id; using {policy_number}",
                sheet,
                holder_row_number,
            )
        self.ctx.reconciler.claim(policy_number)

        principal = self.participant(holder_row, mapping, Relationship.SELF, holder_row_number)
        participants: List[Participant] = [principal]
        for idx, (row_number, row) in enumerate(group.rows):
            if idx == holder_idx:
                continue
            with collector.row_guard(sheet, row_number):
                relationship = self._relationship(row, mapping)
                if relationship == Relationship.SELF:
                    raise RowValidationError("Second Self row in policy; only one policyholder is allowed")
                participants.append(self.named_participant(row, mapping, relationship, row_number))

        holder, action = self.ctx.reconciler.merge(
            policy_number,
            self._policy_fields(holder_row, mapping, principal),
            participants,
            sheet,
            holder_row_number,
        )
        holder = self.apply_premium(self.assign_suffixes(holder))
        self.validate_participants(holder, sheet)
        out.add_policy(holder, action)

    def _policy_fields(self, row: Row, mapping: Dict[str, Any], principal: Participant) -> Dict[str, Any]:
        classifiers = self.ctx.classifiers
        street, town = self.address(row, mapping)
        inception = self.iso_date(row, mapping, "inception_date") or self.ctx.now.date().isoformat()
        cover = self.iso_date(row, mapping, "cover_date") or DateParser.add_months(
            inception, self.cfg.cover_offset_months
        )
        return {
            "first_name": principal.first_name,
            "surname": principal.surname,
            "national_id": principal.national_id,
            "date_of_birth": principal.date_of_birth,
            "gender": principal.gender,
            "phone": principal.phone,
            "email": principal.email,
            "street_address": street,
            "town": town,
            "postal_address": self.text(row, mapping, "postal_address"),
            "status": classifiers.status.classify(self.cell(row, mapping, "status")),
            "package": classifiers.package.classify(self.cell(row, mapping, "package")),
            "agent_name": self.text(row, mapping, "agent"),
            "inception_date": inception,
            "cover_date": cover,
            "link_id": principal.link_id,
        }
