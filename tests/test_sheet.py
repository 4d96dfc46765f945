"""Tests for spreadsheet row loading."""
import math

import pytest

from distributor.sheet import read_csv, rows_from_table
from distributor.validation import validate_rows

ADDRESS_A = "0x" + "1" * 40
ADDRESS_B = "0x" + "2" * 40


def test_rows_from_table_skips_header_and_blank_rows():
    table = [
        ["Address", "Tokens"],
        [ADDRESS_A, 40],
        ["", 20],
        [ADDRESS_B, None],
        [ADDRESS_B],
        [f" {ADDRESS_B} ", "100"],
    ]

    requests = rows_from_table(table)

    assert [r.recipient_address for r in requests] == [ADDRESS_A, ADDRESS_B]
    assert [r.token_amount for r in requests] == [40, 100.0]


def test_rows_from_table_without_header():
    requests = rows_from_table([[ADDRESS_A, 20]], has_header=False)
    assert len(requests) == 1


def test_unparseable_amount_becomes_invalid_row():
    requests = rows_from_table([["a", "b"], [ADDRESS_A, "twenty"]])

    assert math.isnan(requests[0].token_amount)
    row = validate_rows(requests)[0]
    assert row.is_valid is False
    assert row.error == "Invalid token amount (minimum 20)"


def test_read_csv(tmp_path):
    path = tmp_path / "payouts.csv"
    path.write_text(
        "\ufeffAddress,Tokens\n"
        f"{ADDRESS_A},20\n"
        "not-an-address,40\n"
        "\n"
        f"{ADDRESS_B},57\n",
        encoding="utf-8",
    )

    requests = read_csv(path)

    assert [r.token_amount for r in requests] == [20.0, 40.0, 57.0]
    rows = validate_rows(requests)
    assert [row.is_valid for row in rows] == [True, False, True]
    assert rows[2].usd_value == 2.85


def test_read_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_csv(tmp_path / "missing.csv")
