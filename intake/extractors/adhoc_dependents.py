"""
Ad-hoc dependents upload.

Each row names an already-stored policyholder by policy number or by the
holder's national id. Resolved rows are added to a merged copy of that
policyholder (an update); unresolved rows are rejected as link failures.
"""

from __future__ import annotations

from typing import Any, Dict, List

from intake.errors import LinkResolutionFailure, RowValidationError
from intake.extractors.adhoc import SingleSheetExtractor
from intake.extractors.base import ExtractOutput
from intake.logger import get_logger
from intake.mapping import SheetKind
from intake.models import Participant, Policyholder, ReconcileAction, Relationship
from intake.workbook import Row, Workbook

logger = get_logger(__name__)


class AdHocDependentExtractor(SingleSheetExtractor):
    source_format = "adhoc_dependents"
    sheet_kind = SheetKind.DEPENDENTS

    def extract(self, workbook: Workbook) -> ExtractOutput:
        sheet = self.sheet_of(workbook)
        mapping = self.mapping_of(sheet)
        reconciler = self.ctx.reconciler

        owners: Dict[int, Policyholder] = {}
        additions: Dict[int, List[Participant]] = {}
        rejected = 0
        for row_number, row in sheet.data_rows():
            with self.ctx.collector.row_guard(sheet.name, row_number):
                reference = self.text(row, mapping, "policy_number") or self.text(row, mapping, "holder_national_id")
                owner = reconciler.resolve(
                    self.cell(row, mapping, "policy_number"),
                    self.cell(row, mapping, "holder_national_id"),
                    sheet.name,
                    row_number,
                )
                if owner is None:
                    rejected += 1
                    if self.records_link_failures():
                        raise LinkResolutionFailure(reference, row_number, sheet.name)
                    logger.debug("Dropping dependent row %d: no policyholder %r", row_number, reference)
                    continue
                person = self._dependent(row, mapping, row_number)
                owners.setdefault(owner.id, owner)
                additions.setdefault(owner.id, []).append(person)

        out = ExtractOutput()
        for holder_id, owner in owners.items():
            with self.ctx.collector.row_guard(sheet.name, additions[holder_id][0].source_row):
                holder = reconciler.extend(owner, additions[holder_id])
                holder = self.apply_premium(self.assign_suffixes(holder))
                self.validate_participants(holder, sheet.name)
                out.add_policy(holder, ReconcileAction.UPDATE)
        logger.info(
            "Ad-hoc dependents: %d added to %d policies, %d rows without a policyholder",
            sum(len(v) for v in additions.values()), len(out.policyholders), rejected,
        )
        return out

    def _dependent(self, row: Row, mapping: Dict[str, Any], row_number: int) -> Participant:
        relationship = self.ctx.classifiers.relationship.classify(self.cell(row, mapping, "relationship"))
        if relationship == Relationship.SELF:
            raise RowValidationError("A dependents upload cannot add a Self participant")
        return self.named_participant(row, mapping, relationship, row_number)
