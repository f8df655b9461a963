"""
Authorization request lifecycle against a single card.

    Pending --approve_and_earmark--> Earmarked --capture/reverse--> Closed

A request is earmarked on its card once approved and stays there until its
authorized amount drops below ``EPSILON`` through captures or reversals.
"""

from typing import Optional

import structlog

from .domain import EPSILON, AuthorizationRequest, PrepaidCard, require_positive_amount
from .exceptions import InsufficientFundsError, InvalidStateTransitionError, ValidationError
from .payout import LoggingPayoutChannel, PayoutChannel

logger = structlog.get_logger()


class AuthorizationRequestHandler:
    def __init__(
        self,
        authorization_request: AuthorizationRequest,
        card: PrepaidCard,
        payout: Optional[PayoutChannel] = None,
    ):
        if authorization_request.card_id != card.card_id:
            raise ValidationError(
                f"Authorization request {authorization_request.request_id} targets card "
                f"{authorization_request.card_id}, not card {card.card_id}"
            )
        self.authorization_request = authorization_request
        self.card = card
        self.payout = payout or LoggingPayoutChannel()
        self._log = logger.bind(
            request_id=authorization_request.request_id,
            card_id=card.card_id,
            merchant_id=authorization_request.merchant_id,
        )

    def approve_and_earmark(self) -> None:
        """Approve the request and hold its amount on the card.

        The card must have strictly more available than the requested amount;
        a request for exactly the available balance is declined. Nothing is
        mutated when the request is declined.
        """
        request = self.authorization_request
        with self.card.lock:
            if request.approved:
                raise InvalidStateTransitionError(
                    f"Authorization request {request.request_id} has already been approved"
                )
            available = self.card.available_balance()
            requested = request.get_authorized_amount()
            if not available > requested:
                self._log.info("authorization_declined", available=available, requested=requested)
                raise InsufficientFundsError(
                    f"Card {self.card.card_id} has {available} available, "
                    f"cannot hold {requested} for authorization request {request.request_id}",
                    available=available,
                    requested=requested,
                )
            request.approve()
            self.card.earmark(request)
        self._log.info("authorization_approved", amount=requested, available=available - requested)

    def reverse(self, amount: Optional[int] = None) -> int:
        """Release ``amount`` of the hold, or all of what remains when omitted."""
        request = self.authorization_request
        with self.card.lock:
            self._ensure_open("reverse")
            if amount is None:
                amount = request.get_authorized_amount()
            request.reverse(amount)
            self._release_if_settled()
        self._log.info("reversal_completed", amount=amount, remaining=request.authorized_amount)
        return amount

    def capture(self, amount: int) -> None:
        """Capture part of the hold: debit the card and pay the merchant."""
        require_positive_amount(amount)
        request = self.authorization_request
        with self.card.lock:
            self._ensure_open("capture")
            request.mark_as_captured(amount)
            self.card.capture(amount)
            self._release_if_settled()
        self._log.info("capture_completed", amount=amount, remaining=request.authorized_amount)
        self.payout.send(request.merchant_id, amount)

    def _ensure_open(self, action: str) -> None:
        if self.authorization_request.is_closed:
            raise InvalidStateTransitionError(
                f"Cannot {action} authorization request {self.authorization_request.request_id}: "
                "it has been fully captured or reversed"
            )

    def _release_if_settled(self) -> None:
        if self.authorization_request.get_authorized_amount() < EPSILON:
            self.card.remove_earmarked(self.authorization_request)
            self._log.info("earmark_released")
