import pytest

from services.school_management.controllers.assignment_service import parse_assignment_key


@pytest.mark.parametrize(
    "key, expected",
    [
        ("Grade 1-A", ("Grade 1", "A")),
        ("Grade 10-C", ("Grade 10", "C")),
        ("LKG-B", ("LKG", "B")),
        # only the last hyphen splits
        ("Grade 1-A-B", ("Grade 1-A", "B")),
    ],
)
def test_parses_grade_and_section(key, expected):
    assert parse_assignment_key(key) == expected


@pytest.mark.parametrize("key", ["Grade 1", "Grade 1-a", "Grade 1-AB", "-A", "Grade 1-", "", None])
def test_rejects_malformed_keys(key):
    assert parse_assignment_key(key) is None
