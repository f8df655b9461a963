from typing import Optional

import structlog

from .config import settings
from .domain import AuthorizationRequest, Merchant, PrepaidCard
from .exceptions import (
    AuthorizationRequestNotFoundError,
    CardNotFoundError,
    MerchantNotFoundError,
    InsufficientFundsError,
)
from .handler import AuthorizationRequestHandler
from .ids import IdGenerator, SequentialIdGenerator
from .models import (
    AuthorizationActionResponse,
    AuthorizationResponse,
    BalanceResponse,
    BlockedBalanceResponse,
    CaptureRequest,
    CardResponse,
    CreateAuthorizationRequest,
    CreateCardRequest,
    LoadMoneyRequest,
    MerchantResponse,
    RefundRequest,
    ReverseRequest,
)
from .money import format_amount, from_minor_units, to_minor_units
from .payout import MerchantBalancePayoutChannel, PayoutChannel

logger = structlog.get_logger()


class InMemoryStorage:
    def __init__(self, ids: Optional[IdGenerator] = None):
        self.ids = ids or SequentialIdGenerator()
        self.owners: set[int] = set()
        self.cards: dict[int, PrepaidCard] = {}
        self.merchants: dict[int, Merchant] = {}
        self.authorization_requests: dict[int, AuthorizationRequest] = {}

    def get_card(self, card_id: int) -> PrepaidCard:
        card = self.cards.get(card_id)
        if card is None:
            raise CardNotFoundError(f"Card {card_id} not found")
        return card

    def get_merchant(self, merchant_id: int) -> Merchant:
        merchant = self.merchants.get(merchant_id)
        if merchant is None:
            raise MerchantNotFoundError(f"Merchant {merchant_id} not found")
        return merchant

    def get_authorization_request(self, request_id: int) -> AuthorizationRequest:
        request = self.authorization_requests.get(request_id)
        if request is None:
            raise AuthorizationRequestNotFoundError(f"Authorization request {request_id} not found")
        return request

    def register_owner(self, owner_id: Optional[int] = None) -> int:
        if owner_id is None:
            owner_id = self.ids.next_owner_id()
        self.owners.add(owner_id)
        return owner_id


class PrepaidCardService:
    def __init__(
        self,
        storage: Optional[InMemoryStorage] = None,
        payout: Optional[PayoutChannel] = None,
        currency: Optional[str] = None,
    ):
        self.storage = storage or InMemoryStorage()
        self.payout = payout or MerchantBalancePayoutChannel(self.storage.get_merchant)
        self.currency = currency or settings.currency

    def create_card(self, request: CreateCardRequest) -> CardResponse:
        owner_id = self.storage.register_owner(request.owner_id)
        card = PrepaidCard(card_id=self.storage.ids.next_card_id(), owner_id=owner_id)
        self.storage.cards[card.card_id] = card
        logger.info("card_created", card_id=card.card_id, owner_id=owner_id)
        return self._card_response(card)

    def get_card(self, card_id: int) -> CardResponse:
        return self._card_response(self.storage.get_card(card_id))

    def load_money(self, card_id: int, request: LoadMoneyRequest) -> CardResponse:
        card = self.storage.get_card(card_id)
        amount = to_minor_units(request.amount)
        card.load_money(amount)
        logger.info("money_loaded", card_id=card_id, amount=format_amount(amount, self.currency))
        return self._card_response(card)

    def receive_refund(self, card_id: int, request: RefundRequest) -> CardResponse:
        card = self.storage.get_card(card_id)
        amount = to_minor_units(request.amount)
        card.receive_refund(amount)
        logger.info("refund_received", card_id=card_id, amount=format_amount(amount, self.currency))
        return self._card_response(card)

    def get_balance(self, card_id: int) -> BalanceResponse:
        card = self.storage.get_card(card_id)
        return BalanceResponse(
            card_id=card_id,
            balance=from_minor_units(card.available_balance()),
            currency=self.currency,
        )

    def get_blocked_balance(self, card_id: int) -> BlockedBalanceResponse:
        card = self.storage.get_card(card_id)
        return BlockedBalanceResponse(
            card_id=card_id,
            blocked_balance=from_minor_units(card.amount_blocked()),
            currency=self.currency,
        )

    def create_merchant(self) -> MerchantResponse:
        merchant = Merchant(merchant_id=self.storage.ids.next_merchant_id())
        self.storage.merchants[merchant.merchant_id] = merchant
        logger.info("merchant_created", merchant_id=merchant.merchant_id)
        return MerchantResponse.from_domain(merchant, self.currency)

    def get_merchant(self, merchant_id: int) -> MerchantResponse:
        return MerchantResponse.from_domain(self.storage.get_merchant(merchant_id), self.currency)

    def authorize(self, card_id: int, request: CreateAuthorizationRequest) -> AuthorizationActionResponse:
        card = self.storage.get_card(card_id)
        merchant = self.storage.get_merchant(request.merchant_id)

        authorization_request = AuthorizationRequest(
            request_id=self.storage.ids.next_authorization_request_id(),
            card_id=card.card_id,
            merchant_id=merchant.merchant_id,
            original_amount=to_minor_units(request.amount),
        )
        handler = AuthorizationRequestHandler(authorization_request, card, self.payout)
        try:
            handler.approve_and_earmark()
        except InsufficientFundsError as e:
            raise InsufficientFundsError(
                f"Authorization declined: card {card_id} has {format_amount(e.available, self.currency)} "
                f"available, {format_amount(e.requested, self.currency)} requested",
                available=e.available,
                requested=e.requested,
            ) from e

        self.storage.authorization_requests[authorization_request.request_id] = authorization_request
        return self._action_response(authorization_request, card, "Authorization approved and earmarked")

    def capture(self, request_id: int, request: CaptureRequest) -> AuthorizationActionResponse:
        authorization_request = self.storage.get_authorization_request(request_id)
        handler = self._handler_for(authorization_request)
        handler.capture(to_minor_units(request.amount))
        return self._action_response(authorization_request, handler.card, "Amount captured")

    def reverse(self, request_id: int, request: Optional[ReverseRequest] = None) -> AuthorizationActionResponse:
        authorization_request = self.storage.get_authorization_request(request_id)
        handler = self._handler_for(authorization_request)
        amount = None
        if request is not None and request.amount is not None:
            amount = to_minor_units(request.amount)
        reversed_amount = handler.reverse(amount)
        return self._action_response(
            authorization_request,
            handler.card,
            f"Reversed {format_amount(reversed_amount, self.currency)}",
        )

    def get_authorization(self, request_id: int) -> AuthorizationResponse:
        return AuthorizationResponse.from_domain(
            self.storage.get_authorization_request(request_id), self.currency
        )

    def _handler_for(self, authorization_request: AuthorizationRequest) -> AuthorizationRequestHandler:
        card = self.storage.get_card(authorization_request.card_id)
        return AuthorizationRequestHandler(authorization_request, card, self.payout)

    def _card_response(self, card: PrepaidCard) -> CardResponse:
        return CardResponse.from_domain(card, self.currency)

    def _action_response(
        self, authorization_request: AuthorizationRequest, card: PrepaidCard, message: str
    ) -> AuthorizationActionResponse:
        return AuthorizationActionResponse(
            authorization=AuthorizationResponse.from_domain(authorization_request, self.currency),
            card=self._card_response(card),
            message=message,
        )
