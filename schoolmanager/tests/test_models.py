import pytest

from schoolmanager.core.errors import StudentSuspended
from schoolmanager.core.models import (
    Student,
    StudentState,
    Subject,
    total_credit,
    validate_identity_number,
    validate_student_name,
)
from schoolmanager.core.policy import RosterPolicy
from schoolmanager.core.validation import format_name, parse_int


def test_subject_create_normalizes_name():
    s, notes = Subject.create("  data   science2 ", "4")
    assert s.name == "Data Science2"
    assert s.credit == 4
    assert notes == []


@pytest.mark.parametrize("credit", [0, 7, -1, "x", "", "1_2", "\uff14"])
def test_subject_create_clamps_bad_credit_to_one(credit):
    s, notes = Subject.create("Math", credit)
    assert s.credit == 1
    assert len(notes) == 1


def test_subject_create_rejects_bad_name():
    s, notes = Subject.create("Math!", 3)
    assert s is None
    assert notes


def test_subject_equality_is_by_name():
    assert Subject("Math", 4) == Subject("Math", 2)
    assert Subject("Math", 4) != Subject("Art", 4)
    assert len({Subject("Math", 4), Subject("Math", 5)}) == 1
    assert str(Subject("Math", 4)) == "Math,4"


def test_total_credit():
    assert total_credit([Subject("Math", 4), Subject("Science", 5)]) == 9
    assert total_credit([]) == 0


def test_format_name():
    assert format_name("jOHN   doe ") == "John Doe"
    assert format_name("a") == "A"


def test_parse_int_accepts_ascii_digits_only():
    assert parse_int(" 124 ") == 124
    assert parse_int("-7") == -7
    assert parse_int(5) == 5
    assert parse_int("1_23") is None
    assert parse_int("\uff11\uff12\uff13") is None
    assert parse_int("\u0661\u0662\u0663") is None
    assert parse_int("12 3") is None
    assert parse_int(None) is None


def test_student_create_valid():
    student, failures = Student.create("john doe", 123)
    assert failures == []
    assert student.name == "John Doe"
    assert student.identity_number == 123
    assert student.active is True
    assert student.state is StudentState.UNENROLLED_ACTIVE


def test_student_name_setter_keeps_previous_value_on_failure():
    student, _ = Student.create("John Doe", 123)
    result = student.set_name("John D0e")
    assert not result.passed
    assert student.name == "John Doe"
    assert not validate_student_name("   ").passed


@pytest.mark.parametrize("value", [110, 1000, 0, "abc", True, "1_23", "\uff11\uff12\uff13", "\u0661\u0662\u0663"])
def test_identity_setter_keeps_previous_value_on_failure(value):
    student, _ = Student.create("John Doe", 123)
    result = student.set_identity_number(value)
    assert not result.passed
    assert student.identity_number == 123


def test_identity_range_follows_policy():
    policy = RosterPolicy(min_identity_number=1, max_identity_number=50)
    assert validate_identity_number(7, policy).passed
    assert not validate_identity_number(123, policy).passed
    assert validate_identity_number("111").passed
    assert validate_identity_number(999).passed


def test_enroll_and_unenroll():
    math = Subject("Math", 4)
    student, _ = Student.create("John Doe", 123)
    assert student.enroll(math) is True
    assert student.enroll(Subject("Math", 4)) is False
    assert student.enrolled_subjects == [math]
    assert student.state is StudentState.ENROLLED_ACTIVE

    # structurally equal subject removes the enrolled one
    assert student.unenroll(Subject("Math", 1)) is True
    assert student.unenroll(math) is False
    assert student.enrolled_subjects == []


def test_suspension_clears_enrollments():
    student, _ = Student.create("John Doe", 123)
    student.enroll(Subject("Math", 4))
    student.set_active(False)
    assert student.active is False
    assert student.enrolled_subjects == []
    assert student.state is StudentState.SUSPENDED
    assert str(student) == "John Doe (ID: 123, Suspended)"

    student.set_active(True)
    assert student.active is True
    assert student.enrolled_subjects == []


def test_suspended_student_cannot_enroll():
    student, _ = Student.create("John Doe", 123)
    student.set_active(False)
    with pytest.raises(StudentSuspended):
        student.enroll(Subject("Math", 4))
    with pytest.raises(StudentSuspended):
        student.unenroll(Subject("Math", 4))


def test_matches_name_is_case_insensitive():
    student, _ = Student.create("John Doe", 123)
    assert student.matches_name("john   DOE")
    assert not student.matches_name("Jane Doe")
