"""
Domain model for the import engine.

Policyholder → Participant → Payment, plus the diagnostic ImportIssue and the
ImportResult envelope returned to callers. All models are plain pydantic
models; none of them holds a connection to a store.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Relationship(str, Enum):
    SELF = "Self"
    SPOUSE = "Spouse"
    CHILD = "Child"
    STEPCHILD = "Stepchild"
    GRANDCHILD = "Grandchild"
    SIBLING = "Sibling"
    PARENT = "Parent"
    GRANDPARENT = "Grandparent"
    OTHER_DEPENDENT = "Other Dependent"


class PolicyStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    INACTIVE = "Inactive"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"
    EXPRESS = "Express"


class FuneralPackage(str, Enum):
    LITE = "Chitomborwizi Lite"
    STANDARD = "Chitomborwizi Standard"
    PREMIUM = "Chitomborwizi Premium"


class MedicalPackage(str, Enum):
    NONE = "No Medical Aid"
    ZIMHEALTH = "ZimHealth"
    FAMILY_LIFE = "Family Life"
    ALKAANE = "Alkaane"


class CashBackAddon(str, Enum):
    NONE = "No Cash Back"
    CB1 = "CB1"
    CB2 = "CB2"
    CB3 = "CB3"
    CB4 = "CB4"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    ECOCASH = "EcoCash"
    BANK_TRANSFER = "Bank Transfer"
    STOP_ORDER = "Stop Order"


class IssueKind(str, Enum):
    ROW_VALIDATION = "row_validation"
    LINK_RESOLUTION = "link_resolution"
    WARNING = "warning"


class ReconcileAction(str, Enum):
    INSERT = "insert"
    UPDATE = "update"


class Participant(BaseModel):
    """
    Anyone covered by a policy, the policyholder included (relationship Self).

    ``id`` stays ``None`` until the run allocates or reuses an identity.
    ``owner_link_id`` keeps the linking identifier a legacy dependent row
    pointed at, so unattached participants can still be traced.
    """
    id: Optional[int] = None
    link_id: str = ""
    first_name: str = ""
    middle_name: str = ""
    surname: str = ""
    relationship: Relationship = Relationship.OTHER_DEPENDENT
    date_of_birth: str = ""
    national_id: str = ""
    gender: Optional[str] = None
    phone: str = ""
    email: str = ""
    is_student: bool = False
    medical_package: MedicalPackage = MedicalPackage.NONE
    cashback_addon: CashBackAddon = CashBackAddon.NONE
    suffix: Optional[str] = None
    owner_link_id: Optional[str] = None
    source_row: Optional[int] = None


class Policyholder(BaseModel):
    """
    The principal on a policy. Owns the participant list.

    Invariant (enforced by the extractors): exactly one participant with
    relationship Self, carrying suffix ``"000"``.
    """
    id: int
    link_id: str
    policy_number: str
    first_name: str = ""
    surname: str = ""
    national_id: str = ""
    date_of_birth: str = ""
    gender: Optional[str] = None
    phone: str = ""
    email: str = ""
    street_address: str = ""
    town: str = ""
    postal_address: str = ""
    status: PolicyStatus = PolicyStatus.ACTIVE
    package: FuneralPackage = FuneralPackage.LITE
    agent_name: str = ""
    inception_date: str = ""
    cover_date: str = ""
    premium_period: str = ""
    latest_receipt_date: Optional[str] = None
    policy_premium: float = 0.0
    addon_premium: float = 0.0
    total_premium: float = 0.0
    participants: List[Participant] = Field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""

    @property
    def holder(self) -> Optional[Participant]:
        for participant in self.participants:
            if participant.relationship == Relationship.SELF:
                return participant
        return None


class Payment(BaseModel):
    id: int
    policyholder_id: int
    policy_number: str
    amount: float
    payment_date: str
    period: str = ""
    method: PaymentMethod = PaymentMethod.CASH
    is_legacy: bool = False
    legacy_note: Optional[str] = None
    receipt_reference: str = ""
    created_at: str = ""


class ImportIssue(BaseModel):
    """Diagnostic record for one row or sheet. Never owns domain state."""
    row: Optional[int] = None
    sheet: str
    message: str
    kind: IssueKind = IssueKind.ROW_VALIDATION

    @property
    def is_warning(self) -> bool:
        return self.kind == IssueKind.WARNING


class ReconcileDecision(BaseModel):
    policy_number: str
    policyholder_id: int
    action: ReconcileAction


class PremiumBreakdown(BaseModel):
    policy_premium: float
    addon_premium: float
    total_premium: float


class ImportResult(BaseModel):
    """
    Full output of one import run, returned once the run has finished.

    ``errors`` carries row errors and warnings alike; callers decide which of
    them block a commit.
    """
    source_format: str
    policyholders: List[Policyholder] = Field(default_factory=list)
    participants: List[Participant] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    errors: List[ImportIssue] = Field(default_factory=list)
    decisions: List[ReconcileDecision] = Field(default_factory=list)

    def inserted(self) -> List[Policyholder]:
        ids = {d.policyholder_id for d in self.decisions if d.action == ReconcileAction.INSERT}
        return [p for p in self.policyholders if p.id in ids]

    def updated(self) -> List[Policyholder]:
        ids = {d.policyholder_id for d in self.decisions if d.action == ReconcileAction.UPDATE}
        return [p for p in self.policyholders if p.id in ids]

    @property
    def blocking_errors(self) -> List[ImportIssue]:
        return [issue for issue in self.errors if not issue.is_warning]

    @property
    def warnings(self) -> List[ImportIssue]:
        return [issue for issue in self.errors if issue.is_warning]

    def summary(self) -> Dict[str, Any]:
        return {
            "source_format": self.source_format,
            "policyholders": len(self.policyholders),
            "inserted": len(self.inserted()),
            "updated": len(self.updated()),
            "participants": len(self.participants),
            "payments": len(self.payments),
            "errors": len(self.blocking_errors),
            "warnings": len(self.warnings),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["summary"] = self.summary()
        return data
