"""Core orchestrator - coordinates single and batch distributions."""
from typing import List, Optional, Sequence, Union

from ..models import DistributionConfig, DistributionRequest, DistributionResult, ValidatedRow
from ..protocols import ITransferGateway
from ..services.api_client import HTTPAPIClient
from ..services.transfer_gateway import TransferGateway
from ..validation import validate_rows

from .batch import BatchDistributionHandler, BatchDistributionProcess
from .single import SingleDistributionHandler


class DistributionOrchestrator:
    """
    Orchestrates token distributions using injected services.

    Usage:
        async with DistributionOrchestrator(api_url) as distributor:
            result = await distributor.distribute(request, "bonus payout")

            process = distributor.distribute_batch(rows, "bonus payout")
            state = await process.wait()

        # With a custom gateway (tests, other transports)
        async with DistributionOrchestrator(gateway=fake_gateway) as distributor:
            ...
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        config: Optional[DistributionConfig] = None,
        gateway: Optional[ITransferGateway] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            api_url: Transfer service base URL (overrides config.api_url)
            config: Distribution configuration
            gateway: Pre-built transfer gateway; no HTTP client is created when given
        """
        self._config = config or DistributionConfig()
        self._api_url = api_url or self._config.api_url
        self._external_gateway = gateway

        # Initialized in __aenter__
        self._api_client: Optional[HTTPAPIClient] = None
        self._gateway: Optional[ITransferGateway] = None
        self._single_handler: Optional[SingleDistributionHandler] = None
        self._batch_handler: Optional[BatchDistributionHandler] = None

    async def __aenter__(self):
        """Initialize services and handlers."""
        if self._external_gateway:
            self._gateway = self._external_gateway
        elif self._api_url:
            self._api_client = HTTPAPIClient(self._api_url, timeout=self._config.request_timeout)
            await self._api_client.__aenter__()
            self._gateway = TransferGateway(self._api_client, self._config.endpoint)
        else:
            raise ValueError("Either api_url or gateway must be provided")

        self._single_handler = SingleDistributionHandler(self._gateway, self._config)
        self._batch_handler = BatchDistributionHandler(self._gateway, self._config)
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None

    @property
    def config(self) -> DistributionConfig:
        return self._config

    @staticmethod
    def validate(rows: Sequence[DistributionRequest]) -> List[ValidatedRow]:
        """Validate rows without sending anything."""
        return validate_rows(rows)

    async def distribute(
        self,
        request: DistributionRequest,
        reason: str,
        admin_id: Optional[str] = None,
        wait_for_confirmation: Optional[bool] = None,
    ) -> DistributionResult:
        """Distribute to a single recipient."""
        assert self._single_handler is not None
        return await self._single_handler.distribute(request, reason, admin_id, wait_for_confirmation)

    def distribute_batch(
        self,
        rows: Sequence[Union[ValidatedRow, DistributionRequest]],
        reason: str,
        admin_id: Optional[str] = None,
    ) -> BatchDistributionProcess:
        """
        Prepare a sequential batch run.

        Returns a BatchDistributionProcess that can be started, paused,
        resumed, stopped and observed.

        Raises:
            PreconditionError: reason too short or no valid rows
        """
        assert self._batch_handler is not None
        return self._batch_handler.run(rows, reason, admin_id)
