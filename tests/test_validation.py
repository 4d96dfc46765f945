"""Tests for row, batch and reason validation."""
import math
import re
from decimal import Decimal

import pytest

from distributor.errors import PreconditionError
from distributor.models import DistributionRequest
from distributor.validation import (
    INVALID_ADDRESS,
    INVALID_AMOUNT,
    invalid_rows,
    is_valid_reason,
    valid_rows,
    validate_reason,
    validate_row,
    validate_rows,
)

ADDRESS = "0x" + "a1" * 20
CANONICAL = re.compile(r"^0x[0-9a-fA-F]{40}$")


class TestValidateRow:
    def test_valid_row(self):
        row = validate_row(DistributionRequest(ADDRESS, 40))
        assert row.is_valid is True
        assert row.error is None
        assert row.usd_value == 2.0

    @pytest.mark.parametrize("tokens, usd", [(20, 1.00), (100, 5.00), (57, 2.85), (20.5, 1.025)])
    def test_usd_value(self, tokens, usd):
        assert validate_row(DistributionRequest(ADDRESS, tokens)).usd_value == usd

    def test_mixed_case_address_is_accepted(self):
        # Checksum casing is not verified
        row = validate_row(DistributionRequest("0x" + "aB" * 20, 20))
        assert row.is_valid is True

    def test_address_whitespace_is_stripped(self):
        row = validate_row(DistributionRequest(f"  {ADDRESS}\n", 20))
        assert row.is_valid is True
        assert row.recipient_address == ADDRESS

    @pytest.mark.parametrize(
        "address",
        [
            "",
            "0x",
            "0x12345",
            "a1" * 21,
            "0X" + "a1" * 20,
            "0x" + "g1" * 20,
            "0x" + "a1" * 20 + "ff",
            "0x" + "a1" * 19 + "a",
            None,
        ],
    )
    def test_invalid_address(self, address):
        row = validate_row(DistributionRequest(address, 100))
        assert row.is_valid is False
        assert row.error == INVALID_ADDRESS

    @pytest.mark.parametrize("amount", [19.99, 0, -20, float("nan"), float("inf"), "40", None, True])
    def test_invalid_amount(self, amount):
        row = validate_row(DistributionRequest(ADDRESS, amount))
        assert row.is_valid is False
        assert row.error == INVALID_AMOUNT
        assert row.error == "Invalid token amount (minimum 20)"

    def test_minimum_amount_is_inclusive(self):
        assert validate_row(DistributionRequest(ADDRESS, 20)).is_valid is True

    def test_decimal_amount_is_accepted(self):
        row = validate_row(DistributionRequest(ADDRESS, Decimal("100")))
        assert row.is_valid is True
        assert row.token_amount == 100.0
        assert row.usd_value == 5.0

    @pytest.mark.parametrize("amount", [Decimal("19.99"), Decimal("NaN"), Decimal("sNaN"), Decimal("Infinity")])
    def test_invalid_decimal_amount(self, amount):
        row = validate_row(DistributionRequest(ADDRESS, amount))
        assert row.is_valid is False
        assert row.error == INVALID_AMOUNT

    def test_address_rule_wins_over_amount_rule(self):
        row = validate_row(DistributionRequest("nope", 1))
        assert row.error == INVALID_ADDRESS

    def test_valid_implies_canonical_shape_and_minimum(self):
        candidates = [
            DistributionRequest(address, amount)
            for address in [ADDRESS, "0x123", " " + ADDRESS, "0x" + "Z" * 40, "0x" + "F" * 40]
            for amount in [0, 19, 20, 21.5, 1e6, float("nan"), -1]
        ]
        for row in validate_rows(candidates):
            if row.is_valid:
                assert CANONICAL.match(row.recipient_address)
                assert math.isfinite(row.token_amount) and row.token_amount >= 20
                assert row.usd_value == row.token_amount / 20


class TestValidateRows:
    def test_no_row_is_dropped(self):
        requests = [
            DistributionRequest(ADDRESS, 20),
            DistributionRequest("bad", 20),
            DistributionRequest(ADDRESS, 5),
            DistributionRequest(ADDRESS, 100),
        ]
        rows = validate_rows(requests)

        assert len(rows) == len(requests)
        assert [row.token_amount for row in rows] == [20, 20, 5, 100]
        assert [row.is_valid for row in rows] == [True, False, False, True]

    def test_split_helpers(self):
        rows = validate_rows([DistributionRequest(ADDRESS, 20), DistributionRequest("bad", 20)])
        assert len(valid_rows(rows)) == 1
        assert invalid_rows(rows)[0].error == INVALID_ADDRESS

    def test_empty(self):
        assert validate_rows([]) == []


class TestReason:
    def test_too_short_is_rejected(self):
        with pytest.raises(PreconditionError, match="minimum 5 characters"):
            validate_reason("ok")

    def test_length_counts_after_trim(self):
        assert is_valid_reason("  abcd  ") is False
        assert is_valid_reason("abcde") is True

    def test_returns_trimmed_reason(self):
        assert validate_reason("  bonus payout ") == "bonus payout"

    @pytest.mark.parametrize("reason", [None, "", "    ", 12345])
    def test_missing_reason(self, reason):
        with pytest.raises(PreconditionError):
            validate_reason(reason)
