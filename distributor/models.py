"""
Models for distributor module.

Immutable dataclasses following Single Responsibility Principle.
"""
import math
import os
from dataclasses import dataclass
from typing import Optional, Dict, Any

from .errors import MalformedResponseError


TOKENS_PER_USD = 20
MIN_TOKEN_AMOUNT = 20


def format_usd(tokens: float) -> str:
    """Render a token amount as its USD value with two decimals."""
    return f"{tokens / TOKENS_PER_USD:.2f}"


def _format_tokens(value: float) -> str:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class DistributionRequest:
    """One (recipient, amount) pair as entered by the operator."""
    recipient_address: str
    token_amount: float


@dataclass(frozen=True)
class ValidatedRow:
    """Immutable request plus the outcome of row validation."""
    recipient_address: str
    token_amount: float
    is_valid: bool
    usd_value: float = 0.0
    error: Optional[str] = None

    @property
    def request(self) -> DistributionRequest:
        return DistributionRequest(self.recipient_address, self.token_amount)

    def describe(self) -> str:
        """Human readable descriptor, e.g. ``0xabc... (40 tokens)``."""
        return f"{self.recipient_address} ({_format_tokens(self.token_amount)} tokens)"


@dataclass(frozen=True)
class TransferResponse:
    """Parsed response of the transfer service."""
    success: bool
    transaction_hash: Optional[str] = None
    distribution_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TransferResponse":
        """Map the service's camelCase JSON body.

        Raises:
            MalformedResponseError: payload is not an object or has no boolean ``success``
        """
        if not isinstance(payload, dict):
            raise MalformedResponseError(f"Expected JSON object, got {type(payload).__name__}")
        success = payload.get("success")
        if not isinstance(success, bool):
            raise MalformedResponseError("Response has no boolean 'success' field")

        def _text(key: str) -> Optional[str]:
            value = payload.get(key)
            return None if value is None else str(value)

        return cls(
            success=success,
            transaction_hash=_text("transactionHash"),
            distribution_id=_text("distributionId"),
            error=_text("error"),
            details=_text("details"),
            message=_text("message"),
        )


@dataclass(frozen=True)
class DistributionResult:
    """Immutable result of one attempted transfer."""
    success: bool
    address: str
    tokens: float
    transaction_hash: Optional[str] = None
    distribution_id: Optional[str] = None
    error: Optional[str] = None
    details: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def ok(
        cls,
        address: str,
        tokens: float,
        transaction_hash: Optional[str] = None,
        distribution_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        return cls(
            success=True,
            address=address,
            tokens=tokens,
            transaction_hash=transaction_hash,
            distribution_id=distribution_id,
            message=message,
        )

    @classmethod
    def fail(cls, address: str, tokens: float, error: str, details: Optional[str] = None):
        return cls(
            success=False,
            address=address,
            tokens=tokens,
            error=error,
            details=details,
        )

    @classmethod
    def from_response(cls, row: ValidatedRow, response: TransferResponse):
        """Attach the row's address and amount to a service response."""
        return cls(
            success=response.success,
            address=row.recipient_address,
            tokens=row.token_amount,
            transaction_hash=response.transaction_hash,
            distribution_id=response.distribution_id,
            error=response.error if response.success else (response.error or "Distribution failed"),
            details=response.details,
            message=response.message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "address": self.address,
            "tokens": self.tokens,
            "transactionHash": self.transaction_hash,
            "distributionId": self.distribution_id,
            "error": self.error,
            "details": self.details,
            "message": self.message,
        }


@dataclass(frozen=True)
class DistributionConfig:
    """Immutable configuration for distribution runs."""
    api_url: Optional[str] = None
    endpoint: str = "/api/tokens/manual-distribute"
    admin_id: str = "unknown"
    item_delay: float = 2.0  # seconds between batch items
    request_timeout: float = 60
    wait_for_confirmation: bool = True  # single submissions only

    @classmethod
    def from_env(cls, **overrides) -> "DistributionConfig":
        """Build config from DISTRIBUTOR_* environment variables."""
        values: Dict[str, Any] = {}
        if os.getenv("DISTRIBUTOR_API_URL"):
            values["api_url"] = os.getenv("DISTRIBUTOR_API_URL")
        if os.getenv("DISTRIBUTOR_ENDPOINT"):
            values["endpoint"] = os.getenv("DISTRIBUTOR_ENDPOINT")
        if os.getenv("DISTRIBUTOR_ADMIN_ID"):
            values["admin_id"] = os.getenv("DISTRIBUTOR_ADMIN_ID")
        if os.getenv("DISTRIBUTOR_ITEM_DELAY"):
            values["item_delay"] = float(os.getenv("DISTRIBUTOR_ITEM_DELAY"))
        if os.getenv("DISTRIBUTOR_TIMEOUT"):
            values["request_timeout"] = float(os.getenv("DISTRIBUTOR_TIMEOUT"))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
