"""Error taxonomy for the prepaid card ledger."""

from typing import Optional


class PrepaidCardError(Exception):
    pass


class NotFoundError(PrepaidCardError):
    pass


class CardNotFoundError(NotFoundError):
    pass


class MerchantNotFoundError(NotFoundError):
    pass


class AuthorizationRequestNotFoundError(NotFoundError):
    pass


class InsufficientFundsError(PrepaidCardError):
    """Raised when a card cannot cover a hold; the authorization is declined."""

    def __init__(self, message: str, available: int, requested: int):
        super().__init__(message)
        self.available = available
        self.requested = requested


class ValidationError(PrepaidCardError):
    pass


class ExceedsAuthorizedAmountError(ValidationError):
    def __init__(self, message: str, authorized: Optional[int] = None, requested: Optional[int] = None):
        super().__init__(message)
        self.authorized = authorized
        self.requested = requested


class InvalidStateTransitionError(PrepaidCardError):
    pass
