import pytest

from medbook.utils import normalize_phone


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("+250788000000", "+250788000000"),
        ("0788000000", "+250788000000"),
        ("0788 000 000", "+250788000000"),
        ("+1 415 555 2671", "+14155552671"),
    ],
)
def test_normalize_phone_to_e164(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "12345", "not a phone", "+250000"])
def test_normalize_phone_rejects_unusable(raw):
    assert normalize_phone(raw) is None


def test_normalize_phone_uses_given_region():
    assert normalize_phone("(415) 555-2671", default_country="US") == "+14155552671"
    assert normalize_phone("(415) 555-2671") is None
