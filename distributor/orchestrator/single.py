"""Single distribution handler."""
import logging
from typing import Optional, Union

from ..errors import MalformedResponseError, PreconditionError
from ..models import DistributionConfig, DistributionRequest, DistributionResult, TransferResponse, ValidatedRow
from ..protocols import ITransferGateway
from ..validation import validate_reason, validate_row

logger = logging.getLogger(__name__)


class SingleDistributionHandler:
    """Handles ad-hoc distributions to one recipient."""

    def __init__(self, gateway: ITransferGateway, config: Optional[DistributionConfig] = None):
        self._gateway = gateway
        self._config = config or DistributionConfig()

    async def submit(
        self,
        request: Union[DistributionRequest, ValidatedRow],
        reason: str,
        admin_id: Optional[str] = None,
    ) -> DistributionResult:
        """Send and return as soon as the service accepted the transfer."""
        return await self._send(request, reason, admin_id, confirm=False)

    async def submit_and_confirm(
        self,
        request: Union[DistributionRequest, ValidatedRow],
        reason: str,
        admin_id: Optional[str] = None,
    ) -> DistributionResult:
        """Send and wait until the service reports on-chain confirmation."""
        return await self._send(request, reason, admin_id, confirm=True)

    async def distribute(
        self,
        request: Union[DistributionRequest, ValidatedRow],
        reason: str,
        admin_id: Optional[str] = None,
        wait_for_confirmation: Optional[bool] = None,
    ) -> DistributionResult:
        """Dispatch to submit or submit_and_confirm, defaulting to the configured mode."""
        if wait_for_confirmation is None:
            wait_for_confirmation = self._config.wait_for_confirmation
        if wait_for_confirmation:
            return await self.submit_and_confirm(request, reason, admin_id)
        return await self.submit(request, reason, admin_id)

    async def _send(
        self,
        request: Union[DistributionRequest, ValidatedRow],
        reason: str,
        admin_id: Optional[str],
        confirm: bool,
    ) -> DistributionResult:
        reason = validate_reason(reason)
        row = request if isinstance(request, ValidatedRow) else validate_row(request)
        if not row.is_valid:
            raise PreconditionError(row.error)
        admin_id = admin_id or self._config.admin_id

        try:
            if confirm:
                response = await self._gateway.submit_and_confirm(row, reason, admin_id)
            else:
                response = await self._gateway.submit(row, reason, admin_id)
            if not isinstance(response, TransferResponse):
                response = TransferResponse.from_payload(response)
            result = DistributionResult.from_response(row, response)
        except MalformedResponseError as e:
            result = DistributionResult.fail(row.recipient_address, row.token_amount, "Malformed response", str(e))
        except Exception as e:
            logger.error(f"Error distributing to {row.recipient_address}: {e}")
            result = DistributionResult.fail(
                row.recipient_address, row.token_amount, "Network error", str(e) or type(e).__name__
            )

        if result.success:
            logger.info(f"Sent {row.describe()}: {result.transaction_hash}")
        return result
