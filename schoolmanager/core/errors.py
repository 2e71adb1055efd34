from typing import List, TYPE_CHECKING

if TYPE_CHECKING:
    from schoolmanager.core.models import RuleResult


class RosterError(Exception):
    pass


class DuplicateIdentity(RosterError):
    """The same student (name and identity number) is already registered."""

    def __init__(self, identity_number: int, name: str):
        super().__init__(f"{name} (ID: {identity_number}) is an existing student")
        self.identity_number = identity_number
        self.name = name


class ConflictingIdentity(RosterError):
    """The identity number is already taken by a student with a different name."""

    def __init__(self, identity_number: int, holder: str):
        super().__init__(f"identity number {identity_number} has already been taken")
        self.identity_number = identity_number
        self.holder = holder


class StudentNotFound(RosterError):
    def __init__(self, identity_number: int, name: str = ""):
        who = f"{name} (ID: {identity_number})" if name else f"ID {identity_number}"
        super().__init__(f"no student matches {who}")
        self.identity_number = identity_number
        self.name = name


class StudentSuspended(RosterError):
    def __init__(self, identity_number: int):
        super().__init__(f"student {identity_number} is suspended")
        self.identity_number = identity_number


class StudentNotSuspended(RosterError):
    def __init__(self, identity_number: int):
        super().__init__(f"student {identity_number} is not suspended")
        self.identity_number = identity_number


class CreditLimitExceeded(RosterError):
    def __init__(self, current: int, requested: int, limit: int):
        super().__init__(
            f"total credit {current + requested} exceeds the limit of {limit} "
            f"(at most {max(limit - current, 0)} more credit allowed)"
        )
        self.current = current
        self.requested = requested
        self.limit = limit

    @property
    def remaining(self) -> int:
        return max(self.limit - self.current, 0)


class InvalidStudentDetails(RosterError):
    def __init__(self, failures: List["RuleResult"]):
        super().__init__(" | ".join(r.explanation for r in failures))
        self.failures = failures
