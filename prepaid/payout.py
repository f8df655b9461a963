"""Merchant payout channels notified whenever a hold is captured."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

import structlog

from .domain import Merchant

logger = structlog.get_logger()


class PayoutChannel(Protocol):
    def send(self, merchant_id: int, amount: int) -> None: ...


@dataclass(frozen=True)
class Payout:
    merchant_id: int
    amount: int
    sent_at: datetime


class LoggingPayoutChannel:
    """Hands payouts to an external system; here that means logging them."""

    def send(self, merchant_id: int, amount: int) -> None:
        logger.info("payout_sent", merchant_id=merchant_id, amount=amount)


class MerchantBalancePayoutChannel:
    """Credits captured funds to merchants held in-process.

    Delivery is not awaited or confirmed; each payout is recorded in
    ``payouts`` for audit.
    """

    def __init__(self, get_merchant: Callable[[int], Merchant]):
        self._get_merchant = get_merchant
        self.payouts: list[Payout] = []

    def send(self, merchant_id: int, amount: int) -> None:
        merchant = self._get_merchant(merchant_id)
        merchant.receive(amount)
        self.payouts.append(Payout(merchant_id, amount, datetime.now(timezone.utc)))
        logger.info(
            "payout_credited",
            merchant_id=merchant_id,
            amount=amount,
            merchant_balance=merchant.balance,
        )
