import pytest

from helpdesk.models import Email


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("john@example.com", "john@example.com"),
        ("  John@Example.COM  ", "john@example.com"),
        ("John Smith <John@Example.com>", "john@example.com"),
        ("john.@example.com.", "john@example.com"),
        ("john...@example.com", "john@example.com"),
        ("first.last@example.co.uk", "first.last@example.co.uk"),
    ],
)
def test_sanitize_email_normalizes(raw, expected):
    assert Email.sanitize_email(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "   ",
        "no-at-sign",
        "@example.com",
        "john@",
        "john@@example.com",
        "jo hn@example.com",
        "john@.example.com",
    ],
)
def test_sanitize_email_rejects(raw):
    assert Email.sanitize_email(raw) is None
