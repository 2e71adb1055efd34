from typing import Protocol, Sequence

from schoolmanager.core.models import RuleResult, Student, Subject, total_credit


class EnrollmentRule(Protocol):
    def evaluate(self, student: Student, subjects: Sequence[Subject]) -> RuleResult: ...


class ActiveStudentRule:
    def evaluate(self, student: Student, subjects: Sequence[Subject]) -> RuleResult:
        if not student.active:
            return RuleResult(False, f"{student.name}: suspended student cannot be enrolled/unenrolled")
        return RuleResult(True, f"{student.name}: active")


class CreditLimitRule:
    """
    Checks the prospective total: current enrollments plus the subjects about to be
    added must stay within max_credit. Subjects the student already holds are not
    counted twice.
    """
    def __init__(self, max_credit: int):
        self.max_credit = int(max_credit)

    def prospective_total(self, student: Student, subjects: Sequence[Subject]) -> int:
        new = [s for s in subjects if not student.is_enrolled(s)]
        return student.total_credit() + total_credit(new)

    def evaluate(self, student: Student, subjects: Sequence[Subject]) -> RuleResult:
        total = self.prospective_total(student, subjects)
        passed = total <= self.max_credit
        return RuleResult(passed, f"credit={total} {'≤' if passed else '>'} limit={self.max_credit}")


class AndRule:
    def __init__(self, *rules: EnrollmentRule):
        self.rules = list(rules)

    def evaluate(self, student: Student, subjects: Sequence[Subject]) -> RuleResult:
        exps = []
        for r in self.rules:
            rr = r.evaluate(student, subjects)
            exps.append(rr.explanation)
            if not rr.passed:
                return RuleResult(False, " | ".join(exps))
        return RuleResult(True, " | ".join(exps))
