"""
Suffix Code Assigner.

Self is always ``000``. Every other participant is numbered inside its
relationship class, ordered by internal id ascending:

    spouse     101-199
    child      201-299  (Child, Stepchild, Grandchild, Sibling)
    dependent  301-399  (Parent, Other Dependent, Grandparent by default)
    grandparent 401-499 (only under GrandparentSuffix.SEPARATE)

Assignment is deterministic: the same participants with the same ids always
get the same codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from intake.errors import RowValidationError, SuffixOverflowError
from intake.mapping.config import GrandparentSuffix
from intake.models import Participant, Relationship

SELF_SUFFIX = "000"
CLASS_CAPACITY = 99


@dataclass(frozen=True)
class SuffixClass:
    name: str
    base: int

    @property
    def last(self) -> int:
        return self.base + CLASS_CAPACITY - 1

    def contains(self, code: int) -> bool:
        return self.base <= code <= self.last


SPOUSE_CLASS = SuffixClass("spouse", 101)
CHILD_CLASS = SuffixClass("child", 201)
DEPENDENT_CLASS = SuffixClass("dependent", 301)
GRANDPARENT_CLASS = SuffixClass("grandparent", 401)

_CLASS_BY_RELATIONSHIP: Dict[Relationship, SuffixClass] = {
    Relationship.SPOUSE: SPOUSE_CLASS,
    Relationship.CHILD: CHILD_CLASS,
    Relationship.STEPCHILD: CHILD_CLASS,
    Relationship.GRANDCHILD: CHILD_CLASS,
    Relationship.SIBLING: CHILD_CLASS,
    Relationship.PARENT: DEPENDENT_CLASS,
    Relationship.OTHER_DEPENDENT: DEPENDENT_CLASS,
    Relationship.GRANDPARENT: DEPENDENT_CLASS,
}


class SuffixAssigner:
    def __init__(self, grandparent: GrandparentSuffix = GrandparentSuffix.DEPENDENT):
        self._grandparent = grandparent

    def class_of(self, relationship: Relationship) -> Optional[SuffixClass]:
        """``None`` for Self."""
        if relationship == Relationship.SELF:
            return None
        if relationship == Relationship.GRANDPARENT and self._grandparent == GrandparentSuffix.SEPARATE:
            return GRANDPARENT_CLASS
        return _CLASS_BY_RELATIONSHIP[relationship]

    def assign(self, participants: Sequence[Participant], policy_number: str = "") -> List[Participant]:
        """
        Return copies of ``participants`` (same order) with suffix codes set.

        Raises:
            RowValidationError: more than one Self participant
            SuffixOverflowError: a class holds more than 99 participants
        """
        codes: Dict[int, str] = {}
        groups: Dict[SuffixClass, List[int]] = {}
        self_seen = False
        for idx, participant in enumerate(participants):
            suffix_class = self.class_of(participant.relationship)
            if suffix_class is None:
                if self_seen:
                    raise RowValidationError(f"Policy {policy_number}: more than one Self participant")
                self_seen = True
                codes[idx] = SELF_SUFFIX
                continue
            groups.setdefault(suffix_class, []).append(idx)

        for suffix_class, members in groups.items():
            if len(members) > CLASS_CAPACITY:
                raise SuffixOverflowError(policy_number, suffix_class.name, len(members))
            # Participants without an id yet keep their list order after the numbered ones
            ordered = sorted(
                members,
                key=lambda i: (participants[i].id is None, participants[i].id or 0, i),
            )
            for offset, idx in enumerate(ordered):
                codes[idx] = f"{suffix_class.base + offset:03d}"

        return [p.model_copy(update={"suffix": codes[i]}) for i, p in enumerate(participants)]

    def check_compliance(self, participants: Sequence[Participant]) -> List[str]:
        """Problems with already-assigned codes; an empty list means compliant."""
        problems: List[str] = []
        seen: Dict[str, str] = {}
        for participant in participants:
            label = f"{participant.first_name} {participant.surname}".strip() or participant.relationship.value
            code = participant.suffix
            if not code:
                problems.append(f"{label} has no suffix code")
                continue
            if participant.relationship == Relationship.SELF:
                if code != SELF_SUFFIX:
                    problems.append(f"{label} is Self but has suffix {code}")
            else:
                suffix_class = self.class_of(participant.relationship)
                if not code.isdigit() or not suffix_class.contains(int(code)):
                    problems.append(
                        f"{label} ({participant.relationship.value}) has suffix {code} "
                        f"outside {suffix_class.base:03d}-{suffix_class.last:03d}"
                    )
            if code in seen:
                problems.append(f"Suffix {code} is shared by {seen[code]} and {label}")
            else:
                seen[code] = label
        return problems
