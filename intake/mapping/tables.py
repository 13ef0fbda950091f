"""
Alias and keyword tables consumed by the column mapper and the classifiers.

Everything here is data. Header aliases are written in compact form
(lower-case, alphanumeric only) because that is what headers are reduced to
before matching. Order matters in every table: more-specific entries come
first, since the first entry that matches wins.
"""

from __future__ import annotations

from typing import Dict, Tuple

from intake.models import (
    CashBackAddon,
    FuneralPackage,
    MedicalPackage,
    PaymentMethod,
    PolicyStatus,
    Relationship,
)

AliasTable = Dict[str, Tuple[str, ...]]


# ---------------------------------------------------------------------------
# Shared aliases
# ---------------------------------------------------------------------------

POLICY_NUMBER_ALIASES: Tuple[str, ...] = (
    "policynumber", "policyno", "policynum", "polnumber", "polno",
)

_NAME_ALIASES: AliasTable = {
    "first_name": ("firstname", "forename", "givenname", "firstnames"),
    "middle_name": ("middlename", "othernames"),
    "surname": ("surname", "lastname", "familyname"),
}

_CONTACT_ALIASES: AliasTable = {
    "gender": ("gender", "sex"),
    "date_of_birth": ("dateofbirth", "dob", "birthdate", "birth"),
    "phone": ("phonenumber", "phone", "mobile", "cellphone", "cell", "contactnumber"),
    "email": ("emailaddress", "email"),
}

_ADDON_ALIASES: AliasTable = {
    "medical_package": ("medicalpackage", "medicalaid", "medical"),
    "cashback_addon": ("cashbackaddon", "cashback"),
}


# ---------------------------------------------------------------------------
# Policyholder sheet (legacy sheet 1, ad-hoc policies template)
# ---------------------------------------------------------------------------

POLICY_ALIASES: AliasTable = {
    "total_premium": ("totalpremium", "totalmonthlypremium"),
    "addon_premium": ("addonpremium", "addonspremium"),
    "policy_premium": ("policypremium", "basepremium"),
    "premium_period": ("premiumperiod",),
    "latest_receipt_date": ("latestreceiptdate", "lastreceiptdate", "latestreceipt", "lastpaymentdate"),
    "inception_date": ("inceptiondate", "inception", "startdate"),
    "cover_date": ("coverdate", "coverstartdate"),
    "date_created": ("datecreated", "createdat", "created"),
    "last_updated": ("lastupdated", "updatedat", "updated"),
    "status": ("membershipstatus", "policystatus", "status"),
    "relationship": ("relationship", "relation"),
    "agent": ("assignedagent", "agentname", "agent"),
    "postal_address": ("postaladdress", "postal"),
    "street_address": ("streetaddress", "street"),
    "town": ("town", "city"),
    "address": ("physicaladdress", "residentialaddress", "address"),
    **_NAME_ALIASES,
    "full_name": ("fullname", "policyholdername", "membername", "name"),
    "national_id": ("nationalid", "nationalidnumber", "idnumber", "idno", "idbcnumber", "id"),
    **_CONTACT_ALIASES,
    "is_student": ("isstudent", "student"),
    **_ADDON_ALIASES,
    "policy_number": POLICY_NUMBER_ALIASES,
    "uuid": ("uuid", "linkid"),
    "package": ("funeralpackage", "package", "plan", "policy"),
}


# ---------------------------------------------------------------------------
# Dependents sheet (legacy sheet 2, ad-hoc dependents template)
# ---------------------------------------------------------------------------

DEPENDENT_ALIASES: AliasTable = {
    "subscriber_uuid": ("subscriberuuid", "policyholderuuid", "holderuuid", "parentuuid"),
    # Informational only; keeps a column of holder names off the lookup key
    "holder_name": ("policyholdername", "holdername", "policyholder", "principalmember", "mainmember"),
    "holder_national_id": (
        "policyholdernationalid", "holdernationalid", "subscribernationalid",
        "policyholderid", "policyholderidnumber", "holderidnumber", "principalid",
    ),
    "policy_number": POLICY_NUMBER_ALIASES,
    "relationship": ("relationship", "relation"),
    "street_address": ("streetaddress", "street"),
    "town": ("town", "city"),
    "address": ("physicaladdress", "address"),
    **_NAME_ALIASES,
    "full_name": ("fullname", "dependentname", "name"),
    "national_id": ("nationalid", "idnumber", "idbcnumber", "idno", "birthcertificate", "id"),
    **_CONTACT_ALIASES,
    "is_student": ("isstudent", "student"),
    **_ADDON_ALIASES,
    "uuid": ("uuid", "linkid"),
}


# ---------------------------------------------------------------------------
# Receipts sheet (legacy sheet 3, ad-hoc receipts template)
# ---------------------------------------------------------------------------

RECEIPT_ALIASES: AliasTable = {
    "physical_receipt_number": ("physicalreceiptnumber", "physicalreceipt", "manualreceipt"),
    "system_receipt_number": ("systemreceiptnumber", "systemreceipt", "receiptnumber", "receiptno"),
    "receipt_url": ("receipturl", "url"),
    "subscriber_uuid": ("subscriberuuid", "policyholderuuid"),
    "subscriber_national_id": ("subscribernationalid", "nationalid", "idnumber"),
    "policy_number": POLICY_NUMBER_ALIASES,
    "subscriber": ("subscriber", "policyholder", "member"),
    "payment_period": ("paymentperiod", "period"),
    "method": ("paymentmethod", "method", "account"),
    "created_at": ("createdat", "datecreated"),
    "updated_at": ("updatedat", "lastupdated"),
    "date": ("paymentdate", "receiptdate", "date"),
    "amount": ("amountpaid", "amount", "paid"),
}


# ---------------------------------------------------------------------------
# Legacy fixed-layout column positions (zero-based)
# ---------------------------------------------------------------------------

LEGACY_POLICY_POSITIONS: Dict[str, int] = {
    "policy_number": 0, "full_name": 1, "status": 2, "gender": 3,
    "national_id": 4, "date_of_birth": 5, "phone": 6, "email": 7,
    "address": 8, "package": 9, "policy_premium": 10, "addon_premium": 11,
    "total_premium": 12, "premium_period": 14, "inception_date": 15,
    "cover_date": 16, "latest_receipt_date": 17, "date_created": 20,
    "last_updated": 21, "uuid": 22,
}

LEGACY_DEPENDENT_POSITIONS: Dict[str, int] = {
    "relationship": 2, "first_name": 3, "middle_name": 4, "surname": 5,
    "gender": 6, "national_id": 8, "phone": 9, "date_of_birth": 10,
    "uuid": 19, "subscriber_uuid": 20,
}

LEGACY_RECEIPT_POSITIONS: Dict[str, int] = {
    "system_receipt_number": 0, "physical_receipt_number": 1, "subscriber": 2,
    "date": 3, "amount": 4, "method": 7, "payment_period": 11,
    "created_at": 13, "updated_at": 14, "subscriber_uuid": 15,
    "subscriber_national_id": 16,
}


# ---------------------------------------------------------------------------
# Classifier keyword tables (value, keywords)
# ---------------------------------------------------------------------------

RELATIONSHIP_KEYWORDS: Tuple[Tuple[Relationship, Tuple[str, ...]], ...] = (
    (Relationship.SELF, ("self", "policyholder", "holder", "principal", "mainmember")),
    (Relationship.SPOUSE, ("spouse", "wife", "husband")),
    (Relationship.STEPCHILD, ("stepchild", "stepson", "stepdaughter")),
    (Relationship.GRANDCHILD, ("grandchild", "grandson", "granddaughter")),
    (Relationship.GRANDPARENT, ("grandparent", "grandmother", "grandfather")),
    (Relationship.CHILD, ("child", "son", "daughter")),
    (Relationship.SIBLING, ("sibling", "brother", "sister")),
    (Relationship.PARENT, ("parent", "mother", "father")),
)

STATUS_KEYWORDS: Tuple[Tuple[PolicyStatus, Tuple[str, ...]], ...] = (
    (PolicyStatus.INACTIVE, ("inactive", "lapsed")),
    (PolicyStatus.SUSPENDED, ("suspend",)),
    (PolicyStatus.OVERDUE, ("overdue", "arrears")),
    (PolicyStatus.EXPRESS, ("express",)),
    (PolicyStatus.CANCELLED, ("cancel",)),
    (PolicyStatus.ACTIVE, ("active",)),
)

PACKAGE_KEYWORDS: Tuple[Tuple[FuneralPackage, Tuple[str, ...]], ...] = (
    (FuneralPackage.PREMIUM, ("premium",)),
    (FuneralPackage.STANDARD, ("standard",)),
    (FuneralPackage.LITE, ("lite", "basic")),
)

MEDICAL_KEYWORDS: Tuple[Tuple[MedicalPackage, Tuple[str, ...]], ...] = (
    (MedicalPackage.NONE, ("nomedical", "none")),
    (MedicalPackage.ZIMHEALTH, ("zimhealth",)),
    (MedicalPackage.FAMILY_LIFE, ("familylife", "family")),
    (MedicalPackage.ALKAANE, ("alkaane",)),
)

CASHBACK_KEYWORDS: Tuple[Tuple[CashBackAddon, Tuple[str, ...]], ...] = (
    (CashBackAddon.NONE, ("nocashback", "none")),
    (CashBackAddon.CB1, ("cb1",)),
    (CashBackAddon.CB2, ("cb2",)),
    (CashBackAddon.CB3, ("cb3",)),
    (CashBackAddon.CB4, ("cb4",)),
)

PAYMENT_METHOD_KEYWORDS: Tuple[Tuple[PaymentMethod, Tuple[str, ...]], ...] = (
    (PaymentMethod.ECOCASH, ("ecocash", "mobilemoney")),
    (PaymentMethod.BANK_TRANSFER, ("bank", "transfer", "eft")),
    (PaymentMethod.STOP_ORDER, ("stoporder", "debitorder")),
    (PaymentMethod.CASH, ("cash",)),
)
