import re

_FORMATTING_RE = re.compile(r"[\s\-().]")
_NON_DIGIT_RE = re.compile(r"\D")

# Loose sanity check applied to manually entered numbers
PHONE_FORMAT_RE = re.compile(r"^\+?[1-9][\d\s\-().]{7,15}$")


class PhoneNumberError(ValueError):
    pass


def strip_formatting(phone_number: str) -> str:
    """Remove spaces, dashes, parentheses and dots."""
    return _FORMATTING_RE.sub("", phone_number or "")


def normalize_phone_number(phone_number: str) -> str:
    """
    Turn a free-text number into E.164.

    "5551234567" -> "+15551234567", "15551234567" -> "+15551234567",
    "+44 20 7946 0958" -> "+442079460958". Anything else without a leading
    "+" raises PhoneNumberError.
    """
    raw = (phone_number or "").strip()
    digits = _NON_DIGIT_RE.sub("", raw)

    if raw.startswith("+"):
        if not digits:
            raise PhoneNumberError("Phone number is required")
        return "+" + digits

    if len(digits) == 10:
        return "+1" + digits
    if len(digits) == 11 and digits.startswith("1"):
        return "+" + digits

    raise PhoneNumberError("Please include country code (e.g., +1 for US numbers)")
