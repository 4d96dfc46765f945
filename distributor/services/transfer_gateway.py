"""
Transfer Gateway - Single Responsibility: talk to the transfer service.

Translates validated rows into the service's JSON contract and its answers
into TransferResponse objects.
"""
import logging
from typing import Any, Dict

from ..errors import TransferError
from ..models import TransferResponse, ValidatedRow
from ..protocols import IAPIClient

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "/api/tokens/manual-distribute"


class TransferGateway:
    """
    HTTP implementation of ITransferGateway.

    Usage:
        async with HTTPAPIClient(api_url) as api:
            gateway = TransferGateway(api)
            response = await gateway.submit(row, "bonus payout", "admin-1")
    """

    def __init__(self, api_client: IAPIClient, endpoint: str = DEFAULT_ENDPOINT):
        """
        Initialize gateway.

        Args:
            api_client: HTTP client for API calls
            endpoint: Path of the transfer endpoint
        """
        self._api = api_client
        self._endpoint = endpoint

    @staticmethod
    def build_payload(row: ValidatedRow, reason: str, admin_id: str, wait_for_confirmation: bool) -> Dict[str, Any]:
        if not row.is_valid:
            raise ValueError(f"Refusing to transfer an invalid row: {row.error}")
        return {
            "recipientAddress": row.recipient_address,
            "usdValue": row.usd_value,
            "reason": reason,
            "adminId": admin_id,
            "waitForConfirmation": wait_for_confirmation,
        }

    async def submit(self, row: ValidatedRow, reason: str, admin_id: str) -> TransferResponse:
        """Submit a transfer and return once the service accepted it."""
        return await self._transfer(row, reason, admin_id, wait_for_confirmation=False)

    async def submit_and_confirm(self, row: ValidatedRow, reason: str, admin_id: str) -> TransferResponse:
        """Submit a transfer and block until the service reports confirmation."""
        return await self._transfer(row, reason, admin_id, wait_for_confirmation=True)

    async def _transfer(
        self,
        row: ValidatedRow,
        reason: str,
        admin_id: str,
        wait_for_confirmation: bool,
    ) -> TransferResponse:
        payload = self.build_payload(row, reason, admin_id, wait_for_confirmation)
        response = await self._api.post(self._endpoint, json=payload)

        try:
            body = response.json()
        except ValueError as exc:
            raise TransferError(
                f"API error {response.status_code} on POST {self._endpoint}: {response.text[:200]}"
            ) from exc

        result = TransferResponse.from_payload(body)
        if not result.success:
            logger.debug(f"Transfer to {row.recipient_address} rejected ({response.status_code}): {result.error}")
        return result
