"""
Base extractor module.

Every source format is a :class:`BaseExtractor` variant that turns one
decoded :class:`~intake.workbook.Workbook` into the same
:class:`ExtractOutput` shape. Shared per-run collaborators travel in
:class:`RunContext`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping

from intake.collector import ErrorCollector
from intake.logger import get_logger
from intake.mapping import ColumnMapper, ImportConfig
from intake.models import (
    Participant,
    Payment,
    Policyholder,
    ReconcileAction,
    ReconcileDecision,
    Relationship,
)
from intake.normalizers import Classifiers, DataCleaner, DateParser, classify_gender, normalize_phone
from intake.reconcile import IdAllocator, Reconciler
from intake.rules import SuffixAssigner, compute_premium, validate_dependent
from intake.store import RecordStore
from intake.workbook import Row, Workbook

logger = get_logger(__name__)


@dataclass
class RunContext:
    """Collaborators shared by every stage of one import run."""

    cfg: ImportConfig
    store: RecordStore
    now: datetime
    collector: ErrorCollector = field(default_factory=ErrorCollector)

    def __post_init__(self) -> None:
        self.timestamp = self.now.replace(microsecond=0).isoformat()
        self.mapper = ColumnMapper(self.cfg)
        self.classifiers = Classifiers(self.cfg)
        self.ids = IdAllocator(self.store)
        self.reconciler = Reconciler(self.store, self.ids, self.collector, self.timestamp)
        self.suffixes = SuffixAssigner(self.cfg.grandparent_suffix)


@dataclass
class ExtractOutput:
    """What an extractor hands back to the pipeline."""

    policyholders: List[Policyholder] = field(default_factory=list)
    unattached: List[Participant] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    decisions: List[ReconcileDecision] = field(default_factory=list)

    def add_policy(self, holder: Policyholder, action: ReconcileAction) -> None:
        self.policyholders.append(holder)
        self.decisions.append(
            ReconcileDecision(policy_number=holder.policy_number, policyholder_id=holder.id, action=action)
        )

    @property
    def participants(self) -> List[Participant]:
        out: List[Participant] = []
        for holder in self.policyholders:
            out.extend(holder.participants)
        out.extend(self.unattached)
        return out


class BaseExtractor(ABC):
    """
    Abstract base for all source formats.

    Subclasses implement :meth:`extract`. Row handlers run inside
    ``ctx.collector.row_guard`` so one bad row never stops the batch.
    """

    source_format: str = ""

    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        self.cfg = ctx.cfg

    @abstractmethod
    def extract(self, workbook: Workbook) -> ExtractOutput:
        """Turn a workbook into normalised entities; raise FormatError on bad structure."""

    # ----- cell helpers -----------------------------------------------------

    @staticmethod
    def cell(row: Row, mapping: Mapping[str, Any], field_name: str) -> Any:
        return ColumnMapper.get(row, mapping, field_name)

    def text(self, row: Row, mapping: Mapping[str, Any], field_name: str) -> str:
        return DataCleaner.cell_to_str(self.cell(row, mapping, field_name))

    def iso_date(self, row: Row, mapping: Mapping[str, Any], field_name: str) -> str:
        return DateParser.normalize(self.cell(row, mapping, field_name))

    def names(self, row: Row, mapping: Mapping[str, Any]) -> Dict[str, str]:
        first = self.text(row, mapping, "first_name")
        surname = self.text(row, mapping, "surname")
        if not first and not surname:
            first, surname = DataCleaner.split_full_name(self.cell(row, mapping, "full_name"))
        return {
            "first_name": first,
            "middle_name": self.text(row, mapping, "middle_name"),
            "surname": surname,
        }

    def participant(self, row: Row, mapping: Mapping[str, Any], relationship: Relationship, row_number: int) -> Participant:
        """Read the person-level columns of a row."""
        classifiers = self.ctx.classifiers
        return Participant(
            **self.names(row, mapping),
            relationship=relationship,
            date_of_birth=self.iso_date(row, mapping, "date_of_birth"),
            national_id=self.text(row, mapping, "national_id"),
            gender=classify_gender(self.cell(row, mapping, "gender")),
            phone=normalize_phone(self.cell(row, mapping, "phone"), self.cfg.country_code, self.cfg.trunk_prefix),
            email=self.text(row, mapping, "email"),
            is_student=DataCleaner.to_bool(self.cell(row, mapping, "is_student")),
            medical_package=classifiers.medical.classify(self.cell(row, mapping, "medical_package")),
            cashback_addon=classifiers.cashback.classify(self.cell(row, mapping, "cashback_addon")),
            link_id=self.text(row, mapping, "uuid"),
            source_row=row_number,
        )

    # ----- per-policy finishing -------------------------------------------

    def assign_suffixes(self, holder: Policyholder) -> Policyholder:
        participants = self.ctx.suffixes.assign(holder.participants, holder.policy_number)
        return holder.model_copy(update={"participants": participants})

    def apply_premium(self, holder: Policyholder) -> Policyholder:
        breakdown = compute_premium(holder.package, holder.participants)
        return holder.model_copy(update=breakdown.model_dump())

    def validate_participants(self, holder: Policyholder, sheet: str) -> None:
        principal = holder.holder
        if principal is None:
            return
        on = self.ctx.now.date()
        for participant in holder.participants:
            if participant.relationship == Relationship.SELF:
                continue
            for finding in validate_dependent(participant, principal, holder.package, on, self.cfg):
                label = f"{participant.first_name} {participant.surname}".strip()
                self.ctx.collector.warn(f"{label}: {finding}", sheet, participant.source_row)

    # ----- payments ---------------------------------------------------------

    def add_payment(self, out: ExtractOutput, holder: Policyholder, sheet: str, row_number: int, **fields: Any) -> None:
        """Append a payment for ``holder`` unless the same receipt is already known."""
        reconciler = self.ctx.reconciler
        if reconciler.is_duplicate_payment(
            holder.policy_number, fields["payment_date"], fields.get("period", ""), fields["amount"]
        ):
            self.ctx.collector.warn(
                f"Duplicate receipt for policy {holder.policy_number}: "
                f"{fields['amount']:.2f} on {fields['payment_date']} already recorded",
                sheet,
                row_number,
            )
            return
        payment = Payment(
            id=self.ctx.ids.payment(),
            policyholder_id=holder.id,
            policy_number=holder.policy_number,
            **fields,
        )
        reconciler.remember_payment(payment)
        out.payments.append(payment)
