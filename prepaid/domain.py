"""
Card, authorization request and merchant aggregates.

All amounts are integer minor units. The aggregates only enforce their own
bookkeeping rules; sequencing across a card and a request lives in
``prepaid.handler``.
"""

import threading
from dataclasses import dataclass, field

from .exceptions import (
    ExceedsAuthorizedAmountError,
    InvalidStateTransitionError,
    ValidationError,
)

# An authorization whose remaining amount is below one minor unit is settled.
EPSILON = 1


def require_positive_amount(amount: int, label: str = "amount") -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError(f"{label} must be an integer number of minor units, got {amount!r}")
    if amount <= 0:
        raise ValidationError(f"{label} must be positive, got {amount}")
    return amount


@dataclass
class Merchant:
    merchant_id: int
    balance: int = 0

    def receive(self, amount: int) -> None:
        require_positive_amount(amount)
        self.balance += amount


@dataclass
class AuthorizationRequest:
    """A merchant's hold against a single card.

    ``authorized_amount`` is what is still open for capture or reversal:
    the original amount less everything reversed and captured so far.
    """

    request_id: int
    card_id: int
    merchant_id: int
    original_amount: int
    amount_captured: int = 0
    amount_reversed: int = 0
    approved: bool = False

    def __post_init__(self):
        require_positive_amount(self.original_amount, "original_amount")

    @property
    def authorized_amount(self) -> int:
        return self.original_amount - self.amount_reversed - self.amount_captured

    def get_authorized_amount(self) -> int:
        return self.authorized_amount

    @property
    def is_closed(self) -> bool:
        return self.approved and self.authorized_amount < EPSILON

    def approve(self) -> None:
        self.approved = True

    def reverse(self, amount: int) -> None:
        self._check_settlement(amount, "reverse")
        self.amount_reversed += amount

    def mark_as_captured(self, amount: int) -> None:
        self._check_settlement(amount, "capture")
        self.amount_captured += amount

    def _check_settlement(self, amount: int, action: str) -> None:
        require_positive_amount(amount)
        if not self.approved:
            raise InvalidStateTransitionError(
                f"Cannot {action} authorization request {self.request_id} before it is approved"
            )
        if amount > self.authorized_amount:
            raise ExceedsAuthorizedAmountError(
                f"Cannot {action} {amount} on authorization request {self.request_id}: "
                f"only {self.authorized_amount} remains authorized",
                authorized=self.authorized_amount,
                requested=amount,
            )


@dataclass
class PrepaidCard:
    """A prepaid card and the holds currently earmarked against it.

    ``amount_loaded`` is everything loaded minus everything captured by
    merchants. Earmarked requests stay in ``amount_loaded`` but are excluded
    from the available balance until captured or reversed.

    Every read and write takes ``lock``; callers hold it across a balance
    check and the earmark that follows.
    """

    card_id: int
    owner_id: int
    amount_loaded: int = 0
    amount_refunded: int = 0
    active: bool = False
    earmarked: dict[int, AuthorizationRequest] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def load_money(self, amount: int) -> None:
        require_positive_amount(amount)
        with self.lock:
            self.amount_loaded += amount
            self.active = True

    def amount_blocked(self) -> int:
        # Recomputed on every call; the earmark set is expected to stay small.
        with self.lock:
            return sum(request.authorized_amount for request in self.earmarked.values())

    def available_balance(self) -> int:
        with self.lock:
            return self.amount_loaded - self.amount_blocked() - self.amount_refunded

    def earmark(self, request: AuthorizationRequest) -> None:
        with self.lock:
            self.earmarked[request.request_id] = request

    def remove_earmarked(self, request: AuthorizationRequest) -> None:
        with self.lock:
            self.earmarked.pop(request.request_id, None)

    def is_earmarked(self, request: AuthorizationRequest) -> bool:
        with self.lock:
            return request.request_id in self.earmarked

    def capture(self, amount: int) -> None:
        require_positive_amount(amount)
        with self.lock:
            self.amount_loaded -= amount

    def receive_refund(self, amount: int) -> None:
        require_positive_amount(amount)
        with self.lock:
            self.amount_refunded += amount
