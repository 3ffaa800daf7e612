"""Error taxonomy shared by the data access layer, the auth gate and the routers."""


class BillingError(Exception):
    """Base class for all billing server errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(BillingError):
    """Missing, malformed or unverifiable bearer token (401)."""


class ConfigurationError(BillingError):
    """Required server configuration is unavailable (500, generic message)."""


class InvoiceNotFoundError(BillingError):
    def __init__(self, invoice_id: int):
        super().__init__(f"Invoice {invoice_id} not found")
        self.invoice_id = invoice_id


class StorageError(BillingError):
    """Any failure raised by the database driver."""


class InvoiceDecodeError(StorageError):
    """A returned row could not be mapped to an Invoice."""


class QueryTimeoutError(BillingError):
    """A statement did not complete before its deadline."""

    def __init__(self, timeout: float):
        super().__init__(f"Query exceeded {timeout:g}s timeout")
        self.timeout = timeout
