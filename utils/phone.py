"""Phone number normalization for point grants keyed by phone."""

from __future__ import annotations

import re
from typing import Optional

DEFAULT_COUNTRY_CODE = '62'

_NON_DIGITS_RE = re.compile(r'\D', re.ASCII)


def normalize_phone(raw, country_code: Optional[str] = None) -> str:
    """Return digits only, with a leading local "0" rewritten to the country code.

    "0812-3456-789" -> "628123456789"; "+62 812 3456 789" -> "628123456789".
    Returns '' when no digits remain.
    """
    cc = (country_code if country_code is not None else DEFAULT_COUNTRY_CODE).strip().lstrip('+')
    digits = _NON_DIGITS_RE.sub('', str(raw or ''))
    if not digits:
        return ''
    if digits.startswith('0'):
        digits = f'{cc}{digits[1:]}'
    return digits
