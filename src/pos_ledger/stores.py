"""Ticket number schemes and store id derivation.

The POS prints ticket numbers in five formats. The store id is derived from
the ticket number alone, so this table is the only link between a ticket and
its store; each scheme carries its own extraction rule.

Examples:
    >>> extract_store_id("AB-SA-T051707")
    'AB-SA'
    >>> extract_store_id("ABHP01234-01")
    'AB-HP'
    >>> extract_store_id("CL-T123456")
    'AB-CL'
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

ONLINE = "ONLINE"

# Store excluded from rep scoring (warehouse/event outlet).
OUTLIER_STORE = "AB-EA2"


def _first_two_segments(ticket_number: str) -> str:
    parts = ticket_number.split("-")
    return f"{parts[0]}-{parts[1]}"


def _compact_store_code(ticket_number: str) -> str:
    # always the two characters after "AB", whatever the code length
    return f"AB-{ticket_number[2:4]}"


def _prefixed_store_code(ticket_number: str) -> str:
    return f"AB-{ticket_number.split('-')[0]}"


@dataclass(frozen=True)
class TicketNumberScheme:
    """One ticket number format and its store id rule.

    Attributes:
        name: Short identifier used in validation reports.
        pattern: Full-match pattern for the trimmed ticket number.
        store_id: Function mapping a matching ticket number to its store id.
    """

    name: str
    pattern: re.Pattern[str]
    store_id: Callable[[str], str]

    def matches(self, value: str) -> bool:
        return self.pattern.fullmatch(value) is not None


# Order matters: the first matching scheme decides the store id.
TICKET_SCHEMES: tuple[TicketNumberScheme, ...] = (
    # AB-XX-TNNNNNN
    TicketNumberScheme("standard", re.compile(r"AB-[A-Z]{2,4}-T\d{5,7}"), _first_two_segments),
    # AB-XX#-TNNNNNN (store code with a digit)
    TicketNumberScheme("with_digit", re.compile(r"AB-[A-Z]{1,3}\d-T\d{5,7}"), _first_two_segments),
    # AB-XX-1TNNNNNN
    TicketNumberScheme("with_1T", re.compile(r"AB-[A-Z]{2}-1T\d{5,7}"), _first_two_segments),
    # ABXXNNNN-01
    TicketNumberScheme("alternate", re.compile(r"AB[A-Z]{2,4}\d{4,6}-\d{2}"), _compact_store_code),
    # XX-TNNNNNN (no AB prefix)
    TicketNumberScheme("without_AB", re.compile(r"[A-Z]{2,4}-T\d{5,7}"), _prefixed_store_code),
)


def classify_ticket_number(value: str | None) -> TicketNumberScheme | None:
    """Return the scheme a ticket number belongs to, or None."""
    if not value:
        return None
    trimmed = value.strip()
    for scheme in TICKET_SCHEMES:
        if scheme.matches(trimmed):
            return scheme
    return None


def is_ticket_number(value: str | None) -> bool:
    """Check whether a text value is a ticket number in any known scheme."""
    return classify_ticket_number(value) is not None


def extract_store_id(ticket_number: str) -> str:
    """Derive the store id from a ticket number.

    Args:
        ticket_number: Ticket number as printed in the report.

    Returns:
        Store id such as ``"AB-SA"``. Unrecognised formats fall back to the
        first five characters.
    """
    trimmed = ticket_number.strip()
    scheme = classify_ticket_number(trimmed)
    if scheme is None:
        return trimmed[:5]
    return scheme.store_id(trimmed)


def count_ticket_patterns(ticket_numbers: Iterable[str]) -> dict[str, int]:
    """Count ticket numbers per scheme, with unmatched ones under ``"other"``."""
    counts = {scheme.name: 0 for scheme in TICKET_SCHEMES}
    counts["other"] = 0
    for number in ticket_numbers:
        scheme = classify_ticket_number(number)
        counts[scheme.name if scheme else "other"] += 1
    return counts
