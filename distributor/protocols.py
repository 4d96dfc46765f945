"""
Protocols (Interfaces) for Dependency Inversion.

Following Interface Segregation Principle - small, focused interfaces.
"""
from typing import Any, Dict, Protocol, Sequence, runtime_checkable

from .models import DistributionResult, TransferResponse, ValidatedRow


@runtime_checkable
class IAPIClient(Protocol):
    """Interface for API operations."""

    async def post(self, endpoint: str, json: Dict) -> Any:
        """POST request to API."""
        ...


@runtime_checkable
class ITransferGateway(Protocol):
    """
    Interface for the external value-transfer service.

    Two named operations instead of a confirmation flag: ``submit`` returns as
    soon as the service accepts the transfer, ``submit_and_confirm`` blocks
    until the service reports on-chain confirmation.
    """

    async def submit(self, row: ValidatedRow, reason: str, admin_id: str) -> TransferResponse:
        """Fire-and-forget transfer."""
        ...

    async def submit_and_confirm(self, row: ValidatedRow, reason: str, admin_id: str) -> TransferResponse:
        """Transfer and wait for confirmation."""
        ...


class IProgressObserver(Protocol):
    """
    Consumer-facing progress interface for batch runs.

    Every method is optional; ``BatchDistributionProcess.subscribe`` registers
    only the ones an observer defines. Methods may be sync or async.
    """

    def on_validated(self, rows: Sequence[ValidatedRow]) -> None: ...

    def on_item(self, result: DistributionResult, state: Any) -> None: ...

    def on_finish(self, state: Any) -> None: ...
