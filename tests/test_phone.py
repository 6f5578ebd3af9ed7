from __future__ import annotations

import pytest

from skyiq.utils.phone import PHONE_FORMAT_RE, PhoneNumberError, normalize_phone_number, strip_formatting


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("5551234567", "+15551234567"),
        ("15551234567", "+15551234567"),
        ("+44 20 7946 0958", "+442079460958"),
        ("(555) 123-4567", "+15551234567"),
        ("555.123.4567", "+15551234567"),
        ("  1 (555) 123 4567 ", "+15551234567"),
        ("+1-555-123-4567", "+15551234567"),
    ],
)
def test_normalize_phone_number(raw: str, expected: str) -> None:
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize("raw", ["123", "25551234567", "555123456", ""])
def test_numbers_without_country_code_are_rejected(raw: str) -> None:
    with pytest.raises(PhoneNumberError):
        normalize_phone_number(raw)


def test_missing_country_code_message_is_user_facing() -> None:
    with pytest.raises(PhoneNumberError) as exc:
        normalize_phone_number("123")
    assert "country code" in str(exc.value)


def test_loose_format_check_runs_on_stripped_input() -> None:
    assert PHONE_FORMAT_RE.match(strip_formatting("(555) 123-4567"))
    assert PHONE_FORMAT_RE.match(strip_formatting("+44 20 7946 0958"))
    assert not PHONE_FORMAT_RE.match(strip_formatting("0123"))
    assert not PHONE_FORMAT_RE.match(strip_formatting("call me maybe"))
