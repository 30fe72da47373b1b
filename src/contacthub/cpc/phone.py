"""
Phone formatting for the CPC partner.
"""

import re

_NON_DIGITS = re.compile(r"\D")

BRAZIL_CALLING_CODE = "55"
# DDD (2 digits) + subscriber number (up to 9 digits)
LOCAL_PHONE_MAX_DIGITS = 11


def format_phone_for_partner(phone: str) -> str:
    """Convert a phone number to the local format the partner expects.

    Non-digits are stripped; a leading "55" is dropped only while the number is
    longer than a local number, so already-local numbers pass through and the
    result is stable under repeated formatting.

    Examples:
        >>> format_phone_for_partner("+55 11 91234-5678")
        '11912345678'
        >>> format_phone_for_partner("11912345678")
        '11912345678'
    """
    digits = _NON_DIGITS.sub("", phone)
    while digits.startswith(BRAZIL_CALLING_CODE) and len(digits) > LOCAL_PHONE_MAX_DIGITS:
        digits = digits[len(BRAZIL_CALLING_CODE):]
    return digits
