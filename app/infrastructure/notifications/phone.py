"""Phone number normalization for channel addresses.

The messaging API expects international numbers as digits only, country
code first and no leading ``+`` (e.g. ``61400123456``).
"""

from typing import Any

import phonenumbers
from phonenumbers import NumberParseException

DEFAULT_REGION = "AU"


def normalize(raw: Any, default_region: str = DEFAULT_REGION) -> str:
    """Canonicalize a free-form phone string into a channel address.

    Numbers are parsed against ``default_region`` when they carry no country
    code. A valid number is returned in E.164 form without the ``+``. Anything
    that does not parse or validate is returned trimmed but otherwise
    unchanged; empty input yields an empty string. Never raises.

    Args:
        raw: Phone number as stored (``"0400 123 456"``, ``"+61 400 123 456"``)
        default_region: ISO 3166 alpha-2 region for local numbers

    Returns:
        Normalized address, or the trimmed input when it cannot be normalized

    Example:
        >>> normalize("(04) 0012 3456", "AU")
        '61400123456'
        >>> normalize("  not a phone ")
        'not a phone'
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""

    try:
        parsed = phonenumbers.parse(text, default_region)
    except NumberParseException:
        return text

    if not phonenumbers.is_valid_number(parsed):
        return text

    return phonenumbers.format_number(
        parsed, phonenumbers.PhoneNumberFormat.E164
    ).lstrip("+")
