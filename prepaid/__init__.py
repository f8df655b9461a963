"""
Prepaid Card Ledger

This package provides:
- Prepaid cards with loaded, refunded, blocked and available balances
- Merchant authorization requests held ("earmarked") against a card
- Partial captures paid out to merchants, and full or partial reversals
- An in-memory registry of owners, cards, merchants and authorizations
"""

from .domain import AuthorizationRequest, Merchant, PrepaidCard
from .exceptions import (
    AuthorizationRequestNotFoundError,
    CardNotFoundError,
    ExceedsAuthorizedAmountError,
    InsufficientFundsError,
    InvalidStateTransitionError,
    MerchantNotFoundError,
    NotFoundError,
    PrepaidCardError,
    ValidationError,
)
from .handler import AuthorizationRequestHandler
from .ids import IdGenerator, SequentialIdGenerator
from .payout import LoggingPayoutChannel, MerchantBalancePayoutChannel, PayoutChannel
from .service import InMemoryStorage, PrepaidCardService

__all__ = [
    "AuthorizationRequest",
    "Merchant",
    "PrepaidCard",
    "AuthorizationRequestHandler",
    "IdGenerator",
    "SequentialIdGenerator",
    "PayoutChannel",
    "LoggingPayoutChannel",
    "MerchantBalancePayoutChannel",
    "InMemoryStorage",
    "PrepaidCardService",
    "PrepaidCardError",
    "NotFoundError",
    "CardNotFoundError",
    "MerchantNotFoundError",
    "AuthorizationRequestNotFoundError",
    "InsufficientFundsError",
    "ValidationError",
    "ExceedsAuthorizedAmountError",
    "InvalidStateTransitionError",
]
