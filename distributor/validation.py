"""Row, batch and reason validation. Pure functions, no I/O."""
import math
import re
from decimal import Decimal
from numbers import Real
from typing import Iterable, List

from .errors import PreconditionError
from .models import DistributionRequest, ValidatedRow, TOKENS_PER_USD, MIN_TOKEN_AMOUNT


ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")
MIN_REASON_LENGTH = 5

INVALID_ADDRESS = "Invalid address"
INVALID_AMOUNT = f"Invalid token amount (minimum {MIN_TOKEN_AMOUNT})"
INVALID_REASON = f"Reason is required (minimum {MIN_REASON_LENGTH} characters)"


def is_valid_address(address) -> bool:
    # Hex shape only; EIP-55 checksum casing is not enforced.
    if not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.match(address.strip()) is not None


def is_valid_amount(amount) -> bool:
    if isinstance(amount, Decimal):
        return amount.is_finite() and amount >= MIN_TOKEN_AMOUNT
    if isinstance(amount, bool) or not isinstance(amount, Real):
        return False
    return math.isfinite(amount) and amount >= MIN_TOKEN_AMOUNT


def validate_row(row: DistributionRequest) -> ValidatedRow:
    """
    Validate a single request and compute its USD value.

    Rules are applied in order and the first failure sets ``error``:
    address shape, then amount (finite, at least 20 tokens).
    """
    address = row.recipient_address.strip() if isinstance(row.recipient_address, str) else row.recipient_address

    if not is_valid_address(address):
        return ValidatedRow(address, row.token_amount, is_valid=False, error=INVALID_ADDRESS)
    if not is_valid_amount(row.token_amount):
        return ValidatedRow(address, row.token_amount, is_valid=False, error=INVALID_AMOUNT)

    return ValidatedRow(
        recipient_address=address,
        token_amount=float(row.token_amount) if isinstance(row.token_amount, Decimal) else row.token_amount,
        is_valid=True,
        usd_value=float(row.token_amount) / TOKENS_PER_USD,
    )


def validate_rows(rows: Iterable[DistributionRequest]) -> List[ValidatedRow]:
    """Validate rows preserving order. Invalid rows are kept for display."""
    return [validate_row(row) for row in rows]


def valid_rows(rows: Iterable[ValidatedRow]) -> List[ValidatedRow]:
    return [row for row in rows if row.is_valid]


def invalid_rows(rows: Iterable[ValidatedRow]) -> List[ValidatedRow]:
    return [row for row in rows if not row.is_valid]


def is_valid_reason(reason) -> bool:
    return isinstance(reason, str) and len(reason.strip()) >= MIN_REASON_LENGTH


def validate_reason(reason) -> str:
    """Return the trimmed reason or raise PreconditionError."""
    if not is_valid_reason(reason):
        raise PreconditionError(INVALID_REASON)
    return reason.strip()
