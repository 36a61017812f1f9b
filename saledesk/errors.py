"""Error taxonomy shared by the transport and the sale draft engine."""


class SaleDeskError(Exception):
    """Base class for every error raised by saledesk."""


class ApiError(SaleDeskError):
    """The SaleEditor service answered with a non-2xx status."""

    def __init__(self, status: int, message: str = '') -> None:
        self.status = status
        self.message = message or f'HTTP {status}'
        super().__init__(f'{self.status}: {self.message}')


class ConnectivityError(SaleDeskError):
    """The service could not be reached at all."""


class RequestCancelled(SaleDeskError):
    """The owning draft was torn down while the call was in flight."""


class DraftValidationError(SaleDeskError):
    """An action was rejected before any network call was made."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CreationPending(DraftValidationError):
    """Remote creation of the draft has not finished yet."""
