"""Reference code formatting: PREFIX-COUNTERKEY-NNNN."""

import re
import secrets
import string
from datetime import datetime

from galaltix.utils import local_now

SEQUENCE_WIDTH = 4
FALLBACK_SUFFIX_LENGTH = 4

REFERENCE_CODE_RE = re.compile(r"^[A-Z]+-[0-9A-Z]+-[0-9A-Z]{4,}$")
PREFIX_RE = re.compile(r"^[A-Z]+$")
COUNTER_KEY_RE = re.compile(r"^[0-9A-Z]+$")

_BASE36_ALPHABET = string.digits + string.ascii_uppercase


def date_stamp(moment: datetime | None = None) -> str:
    """Return the YYYYMMDD stamp of moment, defaulting to the local date today."""
    return (moment or local_now()).strftime("%Y%m%d")


def code_stem(prefix: str, counter_key: str) -> str:
    """Shared leading part of every code in a stream, e.g. 'INV-20260203-'."""
    return f"{prefix}-{counter_key}-"


def stream_id(prefix: str, counter_key: str) -> str:
    return f"{prefix}-{counter_key}"


def format_reference_code(prefix: str, counter_key: str, sequence: int) -> str:
    """Format a code, padding the sequence to 4 digits. Wider sequences are kept whole."""
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    return f"{code_stem(prefix, counter_key)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(code: str) -> int | None:
    """Extract the numeric sequence from a code.

    Returns None when the last segment is not a plain integer, which is the
    case for timestamp fallback codes.
    """
    _, sep, last = code.rpartition("-")
    if not sep or not last.isdigit():
        return None
    return int(last)


def is_reference_code(code: str) -> bool:
    return bool(REFERENCE_CODE_RE.fullmatch(code))


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Only non-negative values can be encoded")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[rem])
    return "".join(reversed(digits))


def fallback_code(prefix: str, counter_key: str, moment: datetime | None = None) -> str:
    """Build a timestamp based code for when no sequential number could be claimed.

    The last segment is the base-36 millisecond timestamp followed by a random
    suffix, so it is unique without consulting the store but is not sequential.
    """
    millis = int((moment or local_now()).timestamp() * 1000)
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(FALLBACK_SUFFIX_LENGTH))
    return f"{code_stem(prefix, counter_key)}{to_base36(millis)}{suffix}"
