"""Shared fakes for distributor tests."""
import asyncio
import logging
from typing import Callable, List, Optional

import httpx
import pytest

from distributor.models import DistributionRequest, TransferResponse, ValidatedRow
from distributor.validation import validate_rows


def make_address(index: int) -> str:
    return f"0x{index:040x}"


class RecordingGateway:
    """Fake transfer service that records call order and fails on demand (1-based call index)."""

    def __init__(
        self,
        fail_on=(),
        raise_on=(),
        malformed_on=(),
        on_call: Optional[Callable[[int, ValidatedRow], None]] = None,
    ):
        self.calls: List[str] = []
        self.confirm_calls: List[str] = []
        self.payloads: List[tuple] = []
        self.fail_on = set(fail_on)
        self.raise_on = set(raise_on)
        self.malformed_on = set(malformed_on)
        self.on_call = on_call

    async def submit(self, row: ValidatedRow, reason: str, admin_id: str):
        self.calls.append(row.recipient_address)
        self.payloads.append((row.recipient_address, row.usd_value, reason, admin_id))
        index = len(self.calls)
        if self.on_call:
            self.on_call(index, row)
        await asyncio.sleep(0)

        if index in self.raise_on:
            raise httpx.ConnectError("connection refused")
        if index in self.malformed_on:
            return {"unexpected": True}
        if index in self.fail_on:
            return TransferResponse(
                success=False,
                error="Token distribution failed",
                details="insufficient balance",
                distribution_id=f"dist-{index}",
            )
        return TransferResponse(
            success=True,
            transaction_hash=f"0xtx{index}",
            distribution_id=f"dist-{index}",
        )

    async def submit_and_confirm(self, row: ValidatedRow, reason: str, admin_id: str):
        self.confirm_calls.append(row.recipient_address)
        return TransferResponse(success=True, transaction_hash="0xconfirmed")


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def five_rows():
    """4 valid rows (20, 40, 20, 100 tokens) and one malformed address in the middle."""
    requests = [
        DistributionRequest(make_address(1), 20),
        DistributionRequest(make_address(2), 40),
        DistributionRequest("0x12345", 50),
        DistributionRequest(make_address(3), 20),
        DistributionRequest(make_address(4), 100),
    ]
    return validate_rows(requests)


@pytest.fixture
def three_rows():
    return validate_rows([DistributionRequest(make_address(i), 20 * i) for i in range(1, 4)])


@pytest.fixture(autouse=True)
def _reset_logging_disable():
    root_logger = logging.getLogger()
    level = root_logger.level
    handlers = list(root_logger.handlers)
    yield
    logging.disable(logging.NOTSET)
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        if handler not in handlers:
            root_logger.removeHandler(handler)
