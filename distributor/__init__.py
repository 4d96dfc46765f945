"""
Distributor - sequential token distribution to many recipients.

Rows are validated up front, then sent one at a time through the transfer
service. Batch runs can be paused, resumed and stopped between items and keep
an append-only log of every attempted transfer.

Usage:
    from distributor import DistributionOrchestrator, DistributionRequest

    async with DistributionOrchestrator(api_url) as distributor:
        # Single recipient, waits for on-chain confirmation by default
        result = await distributor.distribute(
            DistributionRequest("0x...", 100), reason="bonus payout"
        )

        # Batch
        rows = distributor.validate(read_csv(Path("payouts.csv")))
        process = distributor.distribute_batch(rows, reason="bonus payout")
        process.on_item(lambda result, state: print(result.address, result.success))
        state = await process.wait()
"""
from .errors import PreconditionError, TransferError, MalformedResponseError
from .models import (
    DistributionConfig,
    DistributionRequest,
    DistributionResult,
    TransferResponse,
    ValidatedRow,
    TOKENS_PER_USD,
    MIN_TOKEN_AMOUNT,
)
from .orchestrator import (
    BatchDistributionProcess,
    BatchState,
    DistributionOrchestrator,
    RunMode,
)
from .sheet import read_csv, rows_from_table
from .validation import validate_reason, validate_row, validate_rows

__version__ = "0.1.0"
__all__ = [
    # Main
    "DistributionOrchestrator",
    "BatchDistributionProcess",
    "BatchState",
    "RunMode",
    # Models
    "DistributionConfig",
    "DistributionRequest",
    "DistributionResult",
    "TransferResponse",
    "ValidatedRow",
    "TOKENS_PER_USD",
    "MIN_TOKEN_AMOUNT",
    # Errors
    "PreconditionError",
    "TransferError",
    "MalformedResponseError",
    # Input
    "read_csv",
    "rows_from_table",
    "validate_reason",
    "validate_row",
    "validate_rows",
]
