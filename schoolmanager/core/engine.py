import logging
from typing import Iterable, List, Sequence

from schoolmanager.core.errors import (
    CreditLimitExceeded,
    InvalidStudentDetails,
    StudentNotFound,
    StudentNotSuspended,
    StudentSuspended,
)
from schoolmanager.core.models import RuleResult, Student, StudentSummary, Subject, total_credit
from schoolmanager.core.policy import RosterPolicy, DEFAULT_POLICY
from schoolmanager.core.repositories import StudentRegistry, SubjectCatalog
from schoolmanager.core.rules import ActiveStudentRule, AndRule, CreditLimitRule

logger = logging.getLogger(__name__)


class EnrollmentEngine:
    """
    Registrar operations over one catalog and one registry. Every mutating call either
    completes or raises a RosterError before touching state.
    """

    def __init__(self, catalog: SubjectCatalog, registry: StudentRegistry,
                 policy: RosterPolicy = DEFAULT_POLICY):
        self.catalog = catalog
        self.registry = registry
        self.policy = policy
        self.credit_rule = CreditLimitRule(policy.max_total_credit)
        self.enrollment_rule = AndRule(ActiveStudentRule(), self.credit_rule)

    # ---------- lookup ----------
    def lookup(self, name: str, identity_number: int) -> Student:
        student = self.registry.find(name, identity_number)
        if student is None:
            raise StudentNotFound(identity_number, name)
        return student

    def remaining_credit(self, student: Student) -> int:
        return max(self.policy.max_total_credit - student.total_credit(), 0)

    def summarize(self, student: Student) -> StudentSummary:
        return StudentSummary(
            student=student,
            state=student.state,
            total_credit=student.total_credit(),
            remaining_credit=self.remaining_credit(student),
            subjects=list(student.enrolled_subjects),
        )

    # ---------- registrar ----------
    def register_student(self, name: str, identity_number, subjects: Sequence[Subject] = ()) -> Student:
        student, failures = Student.create(name, identity_number, self.policy)
        if failures:
            raise InvalidStudentDetails(failures)

        # identity clashes are reported ahead of the credit check
        self.registry.ensure_identity_free(student)

        chosen = list(dict.fromkeys(subjects))
        requested = total_credit(chosen)
        if requested > self.policy.max_total_credit:
            raise CreditLimitExceeded(0, requested, self.policy.max_total_credit)

        for s in chosen:
            student.enroll(s)
        self.registry.add(student)
        logger.info("Registered %s with %d subject(s)", student, len(student.enrolled_subjects))
        return student

    def remove_student(self, name: str, identity_number: int) -> Student:
        student = self.lookup(name, identity_number)
        self.registry.remove(student)
        logger.info("Removed %s", student)
        return student

    def suspend(self, name: str, identity_number: int) -> Student:
        student = self.lookup(name, identity_number)
        if not student.active:
            raise StudentSuspended(identity_number)
        student.set_active(False)
        logger.info("Suspended %s", student)
        return student

    def unsuspend(self, name: str, identity_number: int) -> Student:
        student = self.lookup(name, identity_number)
        if student.active:
            raise StudentNotSuspended(identity_number)
        student.set_active(True)
        logger.info("Unsuspended %s", student)
        return student

    # ---------- enrollment ----------
    def check_enrollment(self, student: Student, subjects: Sequence[Subject]) -> RuleResult:
        return self.enrollment_rule.evaluate(student, subjects)

    def enroll(self, name: str, identity_number: int, subjects: Sequence[Subject]) -> List[Subject]:
        """
        Enroll the student in every selected subject not already held. Returns the
        subjects actually added; an empty list means there was nothing new to enroll.
        """
        student = self.lookup(name, identity_number)
        if not student.active:
            raise StudentSuspended(identity_number)

        to_enroll = SubjectCatalog.difference(subjects, student.enrolled_subjects)
        # drop repeats within the selection itself
        to_enroll = list(dict.fromkeys(to_enroll))
        if not self.check_enrollment(student, to_enroll).passed:
            raise CreditLimitExceeded(
                student.total_credit(), total_credit(to_enroll), self.policy.max_total_credit
            )

        for s in to_enroll:
            student.enroll(s)
        return to_enroll

    def unenroll(self, name: str, identity_number: int, subjects: Sequence[Subject]) -> List[Subject]:
        student = self.lookup(name, identity_number)
        if not student.active:
            raise StudentSuspended(identity_number)

        to_unenroll = SubjectCatalog.intersection(student.enrolled_subjects, subjects)
        for s in to_unenroll:
            student.unenroll(s)
        return to_unenroll

    # ---------- queries ----------
    def students_by_positions(self, positions: Iterable[int]) -> List[Student]:
        """
        Active students holding every subject at the given positions. A selection that
        picks no subject (only the 0 sentinel) lists active students enrolled in nothing.
        """
        selected = self.catalog.select_by_positions(positions)
        if not selected:
            return self.registry.filter_unenrolled()
        return self.registry.filter_by_subject_superset(selected)

    def students_by_status(self, active: bool) -> List[Student]:
        return self.registry.filter_by_active(active)
