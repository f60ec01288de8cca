"""Phone number normalisation for Kenyan numbers."""

import re

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_phone(phone: str) -> str:
    """Return ``phone`` in +254 international form when recognised.

    Non-digits are stripped first. Unrecognised numbers are returned as the
    bare digit string.
    """
    digits = _NON_DIGITS.sub("", phone)

    if len(digits) == 9 and digits.startswith("7"):
        return "+254" + digits
    if len(digits) == 10 and digits.startswith("0"):
        return "+254" + digits[1:]
    if len(digits) == 12 and digits.startswith("254"):
        return "+" + digits
    if len(digits) == 13 and digits.startswith("2547"):
        return "+" + digits

    return digits
