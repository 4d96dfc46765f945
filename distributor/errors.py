"""Exceptions raised by the distributor package."""


class PreconditionError(ValueError):
    """A run cannot start: missing reason, invalid single row, no valid rows."""


class TransferError(RuntimeError):
    """The transfer service call failed or returned something unusable."""


class MalformedResponseError(TransferError):
    """The transfer service answered with a body that is not a valid response."""
