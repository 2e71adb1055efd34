import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Iterable, Tuple, Any

from schoolmanager.core.errors import StudentSuspended
from schoolmanager.core.policy import RosterPolicy, DEFAULT_POLICY
from schoolmanager.core.validation import (
    format_name,
    is_alphabetic_name,
    is_alphanumeric_name,
    parse_int,
)

logger = logging.getLogger(__name__)


@dataclass
class RuleResult:
    passed: bool
    explanation: str


def validate_subject_name(raw: str) -> RuleResult:
    if not is_alphanumeric_name(raw or ""):
        return RuleResult(False, f"subject name {raw!r} must be letters and digits only")
    return RuleResult(True, format_name(raw))


def validate_student_name(raw: str) -> RuleResult:
    if not is_alphabetic_name(raw or ""):
        return RuleResult(False, f"student name {raw!r} must be ONLY alphabetic")
    return RuleResult(True, format_name(raw))


def validate_identity_number(raw: Any, policy: RosterPolicy = DEFAULT_POLICY) -> RuleResult:
    value = parse_int(raw)
    if value is None:
        return RuleResult(False, f"identity number {raw!r} is not an integer")
    if not policy.identity_in_range(value):
        return RuleResult(
            False,
            f"identity number {value} is outside "
            f"{policy.min_identity_number}-{policy.max_identity_number}",
        )
    return RuleResult(True, str(value))


@dataclass(frozen=True, eq=False)
class Subject:
    """
    A catalog entry. Two subjects are the same entry when their names match; credit does
    not take part in equality, so enrollment membership and removal only look at names.
    """
    name: str
    credit: int = 1

    @classmethod
    def create(
        cls, raw_name: str, raw_credit: Any, policy: RosterPolicy = DEFAULT_POLICY
    ) -> Tuple[Optional["Subject"], List[str]]:
        notes: List[str] = []
        name_check = validate_subject_name(raw_name)
        if not name_check.passed:
            notes.append(name_check.explanation)
            return None, notes

        credit = parse_int(raw_credit)
        if credit is None or not policy.credit_in_range(credit):
            notes.append(
                f"Invalid credit point {raw_credit!r} for {name_check.explanation}; "
                f"set to {policy.default_credit}"
            )
            credit = policy.default_credit
        return cls(name=name_check.explanation, credit=credit), notes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subject):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return f"{self.name},{self.credit}"


def total_credit(subjects: Iterable[Subject]) -> int:
    return sum(s.credit for s in subjects)


class StudentState(str, Enum):
    UNENROLLED_ACTIVE = "unenrolled-active"
    ENROLLED_ACTIVE = "enrolled-active"
    SUSPENDED = "suspended"


@dataclass
class Student:
    """
    A registered student. `active` is True while the student is not suspended.

    The credit limit is not checked here: callers compare the prospective total against
    the policy before calling `enroll` (see EnrollmentEngine).
    """
    name: str = "None"
    identity_number: int = 0
    active: bool = True
    enrolled_subjects: List[Subject] = field(default_factory=list)

    @classmethod
    def create(
        cls, name: str, identity_number: Any, policy: RosterPolicy = DEFAULT_POLICY
    ) -> Tuple["Student", List[RuleResult]]:
        student = cls()
        failures = [
            r for r in (student.set_name(name), student.set_identity_number(identity_number, policy))
            if not r.passed
        ]
        return student, failures

    # ---------- setters (soft validation) ----------
    def set_name(self, raw: str) -> RuleResult:
        result = validate_student_name(raw)
        if result.passed:
            self.name = result.explanation
        else:
            logger.debug("No changes made to the name of %s: %s", self.identity_number, result.explanation)
        return result

    def set_identity_number(self, raw: Any, policy: RosterPolicy = DEFAULT_POLICY) -> RuleResult:
        result = validate_identity_number(raw, policy)
        if result.passed:
            self.identity_number = int(result.explanation)
        return result

    def set_active(self, active: bool) -> None:
        self.active = bool(active)
        if not self.active:
            # suspension revokes every enrollment
            self.enrolled_subjects.clear()

    # ---------- enrollment ----------
    def is_enrolled(self, subject: Subject) -> bool:
        return subject in self.enrolled_subjects

    def enroll(self, subject: Subject) -> bool:
        if not self.active:
            raise StudentSuspended(self.identity_number)
        if self.is_enrolled(subject):
            return False
        self.enrolled_subjects.append(subject)
        return True

    def unenroll(self, subject: Subject) -> bool:
        if not self.active:
            raise StudentSuspended(self.identity_number)
        if not self.is_enrolled(subject):
            return False
        self.enrolled_subjects.remove(subject)
        return True

    # ---------- queries ----------
    def total_credit(self) -> int:
        return total_credit(self.enrolled_subjects)

    def matches_name(self, name: str) -> bool:
        return self.name.lower() == format_name(name or "").lower()

    @property
    def state(self) -> StudentState:
        if not self.active:
            return StudentState.SUSPENDED
        if self.enrolled_subjects:
            return StudentState.ENROLLED_ACTIVE
        return StudentState.UNENROLLED_ACTIVE

    def __str__(self) -> str:
        status = "Unsuspended" if self.active else "Suspended"
        return f"{self.name} (ID: {self.identity_number}, {status})"


@dataclass
class StudentSummary:
    student: Student
    state: StudentState
    total_credit: int
    remaining_credit: int
    subjects: List[Subject]
