import logging
from typing import Iterable, List, Optional, Tuple

from schoolmanager.core.errors import RosterError
from schoolmanager.core.models import Student
from schoolmanager.core.policy import RosterPolicy, DEFAULT_POLICY
from schoolmanager.core.repositories import StudentRegistry, SubjectCatalog

logger = logging.getLogger(__name__)

# On disk the third roster field is "true" for a student who is NOT suspended.
ACTIVE_TOKENS = {"true": True, "false": False}


def active_token(active: bool) -> str:
    return "true" if active else "false"


class RosterCodec:
    """
    Flat-file formats, one record per line, comma separated, no escaping:

        catalog:  name,credit
        roster:   name,identityNumber,activeFlag[,subjectName,subjectCredit]*

    The per-subject credit in a roster line is written for compatibility with existing
    files but never read back; credit always comes from the catalog.
    """

    def __init__(self, policy: RosterPolicy = DEFAULT_POLICY):
        self.policy = policy

    # ---------- catalog ----------
    def parse_catalog_with_notes(self, lines: Iterable[str]) -> Tuple[SubjectCatalog, List[str]]:
        return SubjectCatalog.load(lines, self.policy)

    def parse_catalog(self, lines: Iterable[str]) -> SubjectCatalog:
        catalog, _notes = self.parse_catalog_with_notes(lines)
        return catalog

    # ---------- roster ----------
    def decode_student(self, line: str, catalog: SubjectCatalog) -> Tuple[Optional[Student], List[str]]:
        notes: List[str] = []
        fields = [f.strip() for f in line.split(",")]
        if len(fields) < 3:
            return None, [f"expected at least 'name,identityNumber,activeFlag', got {line!r}"]

        student, failures = Student.create(fields[0], fields[1], self.policy)
        if failures:
            return None, [r.explanation for r in failures]

        flag = fields[2].lower()
        if flag not in ACTIVE_TOKENS:
            return None, [f"active flag {fields[2]!r} is neither 'true' nor 'false'"]
        active = ACTIVE_TOKENS[flag]

        # trailing fields come in (name, credit) pairs; only the name is used
        subject_names = fields[3::2]
        if not active:
            if any(subject_names):
                notes.append(f"{student}: suspended student's subjects ignored")
            student.set_active(False)
            return student, notes

        for subject_name in subject_names:
            subject = catalog.find(subject_name)
            if subject is None:
                logger.debug("Roster: %s not in catalog, skipped", subject_name)
                continue
            if student.is_enrolled(subject):
                continue
            if student.total_credit() + subject.credit > self.policy.max_total_credit:
                notes.append(f"{student}: {subject.name} skipped, credit limit reached")
                continue
            student.enroll(subject)
        return student, notes

    def parse_roster_with_notes(
        self, lines: Iterable[str], catalog: SubjectCatalog
    ) -> Tuple[StudentRegistry, List[str]]:
        registry = StudentRegistry()
        notes: List[str] = []
        for lineno, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line:
                continue
            student, student_notes = self.decode_student(line, catalog)
            notes.extend(f"line {lineno}: {n}" for n in student_notes)
            if student is None:
                continue
            try:
                registry.add(student)
            except RosterError as e:
                notes.append(f"line {lineno}: {e}; skipped")

        for n in notes:
            logger.warning("Roster: %s", n)
        return registry, notes

    def parse_roster(self, lines: Iterable[str], catalog: SubjectCatalog) -> StudentRegistry:
        registry, _notes = self.parse_roster_with_notes(lines, catalog)
        return registry

    def encode_student(self, student: Student) -> str:
        fields = [student.name, str(student.identity_number), active_token(student.active)]
        for s in student.enrolled_subjects:
            fields.extend([s.name, str(s.credit)])
        return ",".join(fields)

    def serialize_roster(self, registry: StudentRegistry) -> List[str]:
        return [self.encode_student(s) for s in registry]
