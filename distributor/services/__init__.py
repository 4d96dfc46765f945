"""Services for distributor module."""
from .api_client import HTTPAPIClient
from .transfer_gateway import TransferGateway, DEFAULT_ENDPOINT

__all__ = [
    "HTTPAPIClient",
    "TransferGateway",
    "DEFAULT_ENDPOINT",
]
