"""Custom exceptions for ledger-split."""


class LedgerSplitError(Exception):
    """Base exception for all ledger-split errors."""

    pass


class ConfigurationError(LedgerSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(LedgerSplitError):
    """Raised when user input is malformed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class NotFoundError(LedgerSplitError):
    """Raised when a ledger, member or transaction does not exist."""

    def __init__(self, resource: str, message: str | None = None):
        self.resource = resource
        super().__init__(message or f"The specified {resource} could not be found")


class InternalInvariantViolation(LedgerSplitError):
    """Raised when stored data breaks an invariant the core relies on.

    This is never a user error and is never corrected automatically.
    """

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Internal consistency failure: {detail}")


class ApportionmentError(InternalInvariantViolation):
    """Raised when a total cannot be split across the given weights."""

    pass


class ExternalDependencyError(LedgerSplitError):
    """Base class for failures of services outside this process."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class ExchangeRateAPIError(ExternalDependencyError):
    """Raised when the exchange rate API request fails."""

    pass
