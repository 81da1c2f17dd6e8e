from __future__ import annotations

import re

from salesorders.domain.errors import InvalidReference

SEQUENCE_WIDTH = 10

# Municipalities use their four digit code, other organizations a four letter abbreviation.
_ORG_CODE_RE = re.compile(r"^(?:\d{4}|[A-Za-z]{4})$")
_REFERENCE_RE = re.compile(r"^(?P<org>\d{4}|[A-Za-z]{4})-(?P<year>\d{4})-(?P<seq>\d{1,11})$")


def format_reference(org_code: str, year: int, sequence: int) -> str:
    """Build the human readable order reference, e.g. ``6666-2019-0000000012``."""
    if not _ORG_CODE_RE.match(org_code or ""):
        raise InvalidReference(f"invalid organization code: {org_code!r}", reference=str(org_code))
    if sequence < 1:
        raise InvalidReference(f"reference sequence must be positive: {sequence}", reference=str(sequence))
    return f"{org_code}-{year:04d}-{sequence:0{SEQUENCE_WIDTH}d}"


def parse_reference(reference: str) -> tuple[str, int, int]:
    match = _REFERENCE_RE.match(reference or "")
    if match is None:
        raise InvalidReference(f"malformed order reference: {reference!r}", reference=str(reference))
    return match.group("org"), int(match.group("year")), int(match.group("seq"))
