from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from .domain import AuthorizationRequest, Merchant, PrepaidCard
from .money import from_minor_units


class AuthorizationStatus(str, Enum):
    PENDING = "PENDING"
    EARMARKED = "EARMARKED"
    CLOSED = "CLOSED"


class CreateCardRequest(BaseModel):
    owner_id: Optional[int] = Field(default=None, description="Existing owner; a new owner is registered when omitted")


class LoadMoneyRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)

    model_config = ConfigDict(json_schema_extra={"example": {"amount": "6.00"}})


class RefundRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class CreateAuthorizationRequest(BaseModel):
    merchant_id: int
    amount: Decimal = Field(..., gt=0, decimal_places=2)

    model_config = ConfigDict(json_schema_extra={"example": {"merchant_id": 1, "amount": "5.00"}})


class CaptureRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class ReverseRequest(BaseModel):
    amount: Optional[Decimal] = Field(
        default=None, gt=0, decimal_places=2, description="Omit to reverse everything still authorized"
    )


class CardResponse(BaseModel):
    card_id: int
    owner_id: int
    active: bool
    currency: str
    amount_loaded: Decimal
    amount_refunded: Decimal
    available_balance: Decimal
    blocked_balance: Decimal
    earmarked_request_ids: list[int]

    @classmethod
    def from_domain(cls, card: PrepaidCard, currency: str) -> "CardResponse":
        with card.lock:
            return cls(
                card_id=card.card_id,
                owner_id=card.owner_id,
                active=card.active,
                currency=currency,
                amount_loaded=from_minor_units(card.amount_loaded),
                amount_refunded=from_minor_units(card.amount_refunded),
                available_balance=from_minor_units(card.available_balance()),
                blocked_balance=from_minor_units(card.amount_blocked()),
                earmarked_request_ids=sorted(card.earmarked),
            )


class BalanceResponse(BaseModel):
    card_id: int
    balance: Decimal
    currency: str


class BlockedBalanceResponse(BaseModel):
    card_id: int
    blocked_balance: Decimal
    currency: str


class MerchantResponse(BaseModel):
    merchant_id: int
    balance: Decimal
    currency: str

    @classmethod
    def from_domain(cls, merchant: Merchant, currency: str) -> "MerchantResponse":
        return cls(
            merchant_id=merchant.merchant_id,
            balance=from_minor_units(merchant.balance),
            currency=currency,
        )


class AuthorizationResponse(BaseModel):
    request_id: int
    card_id: int
    merchant_id: int
    status: AuthorizationStatus
    approved: bool
    currency: str
    original_amount: Decimal
    amount_captured: Decimal
    amount_reversed: Decimal
    authorized_amount: Decimal

    @classmethod
    def from_domain(cls, request: AuthorizationRequest, currency: str) -> "AuthorizationResponse":
        if not request.approved:
            status = AuthorizationStatus.PENDING
        elif request.is_closed:
            status = AuthorizationStatus.CLOSED
        else:
            status = AuthorizationStatus.EARMARKED
        return cls(
            request_id=request.request_id,
            card_id=request.card_id,
            merchant_id=request.merchant_id,
            status=status,
            approved=request.approved,
            currency=currency,
            original_amount=from_minor_units(request.original_amount),
            amount_captured=from_minor_units(request.amount_captured),
            amount_reversed=from_minor_units(request.amount_reversed),
            authorized_amount=from_minor_units(request.authorized_amount),
        )


class AuthorizationActionResponse(BaseModel):
    authorization: AuthorizationResponse
    card: CardResponse
    message: str
