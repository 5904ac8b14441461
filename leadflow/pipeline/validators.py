"""
Contact-detail validators shared by the quality and spam scorers.

All of them accept None / garbage and answer False rather than raising.
"""
import re
from datetime import date
from typing import Optional

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
REPEATED_DIGIT_RE = re.compile(r'^(\d)\1+$')


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return bool(EMAIL_RE.match(email.strip().lower()))


def phone_digits(phone: Optional[str]) -> str:
    return re.sub(r'\D', '', phone or '')


def is_valid_phone(phone: Optional[str]) -> bool:
    """10 to 15 digits once punctuation and the leading + are dropped."""
    if not phone:
        return False
    return 10 <= len(phone_digits(phone)) <= 15


def is_sequential_phone(phone: Optional[str]) -> bool:
    """1111111111, 1234567890, 9876543210 and the like (9 to 0 counts as a step)."""
    digits = phone_digits(phone)
    if len(digits) < 2:
        return False
    if REPEATED_DIGIT_RE.match(digits):
        return True
    steps = [(int(b) - int(a)) % 10 for a, b in zip(digits, digits[1:])]
    return all(s == 1 for s in steps) or all(s == 9 for s in steps)


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Leading YYYY-MM-DD of a form value, or None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
