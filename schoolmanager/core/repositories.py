import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Set, Tuple

from schoolmanager.core.errors import ConflictingIdentity, DuplicateIdentity, StudentNotFound
from schoolmanager.core.models import Student, Subject
from schoolmanager.core.policy import RosterPolicy, DEFAULT_POLICY
from schoolmanager.core.validation import format_name

logger = logging.getLogger(__name__)


class SubjectCatalog:
    """
    Every subject the school offers, in load order. The order defines the 1-based
    position used by selection screens; position 0 is reserved for "no selection".
    Never changes once loaded.
    """

    def __init__(self, subjects: Iterable[Subject] = ()):
        self._subjects: Tuple[Subject, ...] = tuple(subjects)

    @classmethod
    def load(
        cls, lines: Iterable[str], policy: RosterPolicy = DEFAULT_POLICY
    ) -> Tuple["SubjectCatalog", List[str]]:
        subjects: List[Subject] = []
        seen: Set[Subject] = set()
        notes: List[str] = []
        for lineno, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue
            fields = line.split(",")
            if len(fields) < 2:
                notes.append(f"line {lineno}: expected 'name,credit', got {line!r}")
                continue
            subject, subject_notes = Subject.create(fields[0], fields[1], policy)
            notes.extend(f"line {lineno}: {n}" for n in subject_notes)
            if subject is None:
                continue
            if subject in seen:
                notes.append(f"line {lineno}: subject {subject.name} listed twice; keeping the first")
                continue
            seen.add(subject)
            subjects.append(subject)

        for n in notes:
            logger.warning("Catalog: %s", n)
        return cls(subjects), notes

    def size(self) -> int:
        return len(self._subjects)

    def __len__(self) -> int:
        return len(self._subjects)

    def __iter__(self) -> Iterator[Subject]:
        return iter(self._subjects)

    def __contains__(self, subject: object) -> bool:
        return subject in self._subjects

    def at(self, position: int) -> Subject:
        if position < 1 or position > len(self._subjects):
            raise IndexError(f"position {position} outside 1-{len(self._subjects)}")
        return self._subjects[position - 1]

    def find(self, name: str) -> Optional[Subject]:
        wanted = format_name(name or "")
        for s in self._subjects:
            if s.name == wanted:
                return s
        return None

    def positions(self) -> List[Tuple[int, Subject]]:
        return list(enumerate(self._subjects, start=1))

    def select_by_positions(self, positions: Iterable[int]) -> List[Subject]:
        wanted = set(positions)
        # out-of-range positions, 0 included, select nothing
        return [s for pos, s in enumerate(self._subjects, start=1) if pos in wanted]

    @staticmethod
    def difference(base: Iterable[Subject], subtrahend: Iterable[Subject]) -> List[Subject]:
        """Subjects of `base` not in `subtrahend`, as a new list in `base` order."""
        excluded = set(subtrahend)
        return [s for s in base if s not in excluded]

    @staticmethod
    def intersection(base: Iterable[Subject], other: Iterable[Subject]) -> List[Subject]:
        kept = set(other)
        return [s for s in base if s in kept]


class StudentRegistry:
    """Every registered student, in registration order, keyed by identity number."""

    def __init__(self, students: Iterable[Student] = ()):
        self._students: List[Student] = []
        for s in students:
            self.add(s)

    def __len__(self) -> int:
        return len(self._students)

    def __iter__(self) -> Iterator[Student]:
        return iter(list(self._students))

    def list_students(self) -> List[Student]:
        return list(self._students)

    # ---------- mutation ----------
    def ensure_identity_free(self, student: Student) -> None:
        existing = self.find_by_identity(student.identity_number)
        if existing is None:
            return
        if existing.matches_name(student.name):
            raise DuplicateIdentity(student.identity_number, existing.name)
        raise ConflictingIdentity(student.identity_number, existing.name)

    def add(self, student: Student) -> Student:
        self.ensure_identity_free(student)
        self._students.append(student)
        return student

    def remove(self, student: Student) -> Student:
        for idx, s in enumerate(self._students):
            if s.identity_number == student.identity_number:
                return self._students.pop(idx)
        raise StudentNotFound(student.identity_number, student.name)

    # ---------- lookup ----------
    def identity_in_use(self, identity_number: int) -> bool:
        return self.find_by_identity(identity_number) is not None

    def find_by_identity(self, identity_number: int) -> Optional[Student]:
        for s in self._students:
            if s.identity_number == identity_number:
                return s
        return None

    def find(self, name: str, identity_number: int) -> Optional[Student]:
        s = self.find_by_identity(identity_number)
        if s is not None and s.matches_name(name):
            return s
        return None

    def find_all_by_name(self, name: str) -> List[Student]:
        return [s for s in self._students if s.matches_name(name)]

    # ---------- filters ----------
    def filter_by_active(self, active: bool) -> List[Student]:
        return [s for s in self._students if s.active == active]

    def filter_by_subject_superset(self, required: Sequence[Subject]) -> List[Student]:
        needed = set(required)
        return [
            s for s in self._students
            if s.active and needed.issubset(s.enrolled_subjects)
        ]

    def filter_unenrolled(self, active_only: bool = True) -> List[Student]:
        return [
            s for s in self._students
            if not s.enrolled_subjects and (s.active or not active_only)
        ]
