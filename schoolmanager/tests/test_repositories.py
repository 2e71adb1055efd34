import pytest

from schoolmanager.core.errors import ConflictingIdentity, DuplicateIdentity, StudentNotFound
from schoolmanager.core.models import Student, Subject
from schoolmanager.core.repositories import StudentRegistry, SubjectCatalog


def make_catalog():
    catalog, notes = SubjectCatalog.load(["Math,4", "Science,5", "Art,6"])
    assert notes == []
    return catalog


def make_student(name, identity_number, *subjects, active=True):
    student, failures = Student.create(name, identity_number)
    assert failures == []
    for s in subjects:
        student.enroll(s)
    student.set_active(active)
    return student


def test_catalog_load_keeps_order_and_positions():
    catalog = make_catalog()
    assert catalog.size() == 3
    assert len(catalog) == 3
    assert [s.name for s in catalog] == ["Math", "Science", "Art"]
    assert catalog.at(1).name == "Math"
    assert catalog.at(3).name == "Art"
    assert catalog.positions()[1] == (2, catalog.at(2))


@pytest.mark.parametrize("position", [0, 4, -1])
def test_catalog_at_out_of_range(position):
    with pytest.raises(IndexError):
        make_catalog().at(position)


def test_catalog_load_warns_and_skips():
    catalog, notes = SubjectCatalog.load(["Math,9", "", "Bad!,3", "Science", "math,2", "Art,x"])
    assert [(s.name, s.credit) for s in catalog] == [("Math", 1), ("Art", 1)]
    assert len(notes) == 5


def test_catalog_find_by_name():
    catalog = make_catalog()
    assert catalog.find("science") is catalog.at(2)
    assert catalog.find("History") is None


def test_select_by_positions_drops_sentinel_and_out_of_range():
    catalog = make_catalog()
    assert catalog.select_by_positions({0, 4, -2}) == []
    selected = catalog.select_by_positions({3, 1, 0, 99})
    assert [s.name for s in selected] == ["Math", "Art"]
    assert selected[0] is catalog.at(1)


def test_difference_and_intersection_do_not_mutate_inputs():
    catalog = make_catalog()
    base = [catalog.at(1), catalog.at(2)]
    other = [Subject("Science", 5), catalog.at(3)]

    diff = SubjectCatalog.difference(base, other)
    inter = SubjectCatalog.intersection(base, other)

    assert [s.name for s in diff] == ["Math"]
    assert [s.name for s in inter] == ["Science"]
    assert inter[0] is catalog.at(2)
    assert [s.name for s in base] == ["Math", "Science"]
    assert [s.name for s in other] == ["Science", "Art"]
    assert diff is not base and inter is not base


def test_registry_add_rejects_identity_clashes():
    registry = StudentRegistry([make_student("John Doe", 123)])
    with pytest.raises(DuplicateIdentity):
        registry.add(make_student("john doe", 123))
    with pytest.raises(ConflictingIdentity):
        registry.add(make_student("Jane Roe", 123))
    assert len(registry) == 1
    assert registry.identity_in_use(123)
    assert not registry.identity_in_use(124)


def test_registry_remove():
    john = make_student("John Doe", 123)
    registry = StudentRegistry([john, make_student("Jane Roe", 124)])
    assert registry.remove(make_student("John Doe", 123)) is john
    assert registry.find_by_identity(123) is None
    with pytest.raises(StudentNotFound):
        registry.remove(john)


def test_registry_lookups():
    john = make_student("John Doe", 123)
    other_john = make_student("John Doe", 125)
    registry = StudentRegistry([john, make_student("Jane Roe", 124), other_john])
    assert registry.find_by_identity(124).name == "Jane Roe"
    assert registry.find("john doe", 123) is john
    assert registry.find("Jane Roe", 123) is None
    assert registry.find_all_by_name("JOHN DOE") == [john, other_john]


def test_registry_filters():
    catalog = make_catalog()
    math, science, art = catalog.at(1), catalog.at(2), catalog.at(3)
    both = make_student("John Doe", 123, math, science)
    only_math = make_student("Jane Roe", 124, math)
    idle = make_student("Ann Lee", 125)
    suspended = make_student("Bob Ray", 126, math, science, active=False)
    registry = StudentRegistry([both, only_math, idle, suspended])

    assert registry.filter_by_active(False) == [suspended]
    assert registry.filter_by_active(True) == [both, only_math, idle]
    assert registry.filter_by_subject_superset([math]) == [both, only_math]
    assert registry.filter_by_subject_superset([math, science]) == [both]
    assert registry.filter_by_subject_superset([art]) == []
    assert registry.filter_unenrolled() == [idle]
    assert registry.filter_unenrolled(active_only=False) == [idle, suspended]
