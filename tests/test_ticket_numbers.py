"""Tests for ticket number schemes and store id derivation."""

import pytest

from pos_ledger.stores import (
    classify_ticket_number,
    count_ticket_patterns,
    extract_store_id,
    is_ticket_number,
)


class TestStoreIdDerivation:
    """Each of the five ticket number formats maps to its store id rule."""

    @pytest.mark.parametrize(
        ("ticket_number", "store_id", "scheme"),
        [
            ("AB-SA-T051707", "AB-SA", "standard"),
            ("AB-EA2-T12345", "AB-EA2", "with_digit"),
            ("AB-SA-1T123456", "AB-SA", "with_1T"),
            ("ABHP01234-01", "AB-HP", "alternate"),
            ("CL-T123456", "AB-CL", "without_AB"),
        ],
    )
    def test_scheme_and_store_id(self, ticket_number: str, store_id: str, scheme: str) -> None:
        """Ticket numbers classify into their scheme and derive the documented store id."""
        assert classify_ticket_number(ticket_number).name == scheme
        assert extract_store_id(ticket_number) == store_id

    def test_alternate_scheme_uses_two_letters_after_prefix(self) -> None:
        """Longer compact store codes still keep only two letters."""
        assert extract_store_id("ABSAL01234-02") == "AB-SA"

    def test_surrounding_whitespace_is_ignored(self) -> None:
        assert is_ticket_number("  AB-SA-T051707 ")
        assert extract_store_id("  AB-SA-T051707 ") == "AB-SA"

    def test_unknown_format_falls_back_to_prefix(self) -> None:
        assert extract_store_id("XYZ123456") == "XYZ12"


class TestIsTicketNumber:
    """Ticket header detection."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            None,
            "Ticket Detail Report",
            "1/15/24",
            "AB-SA-T1234",  # too few digits
            "ab-sa-t051707",  # lower case
            "AB-SA-T051707 extra",
        ],
    )
    def test_non_ticket_text(self, text) -> None:
        assert not is_ticket_number(text)


def test_count_ticket_patterns() -> None:
    """Pattern counts cover every scheme plus unmatched numbers."""
    counts = count_ticket_patterns(
        ["AB-SA-T051707", "AB-SA-T051708", "ABHP01234-01", "CL-T123456", "weird"]
    )
    assert counts == {
        "standard": 2,
        "with_digit": 0,
        "with_1T": 0,
        "alternate": 1,
        "without_AB": 1,
        "other": 1,
    }
