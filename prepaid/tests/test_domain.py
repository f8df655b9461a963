"""
Unit Tests for the card, authorization request and merchant aggregates

Tests cover:
1. Loading money and card activation
2. Balance derivation from earmarked requests
3. Earmark bookkeeping
4. Authorization request settlement guards
5. Merchant balances
"""

import pytest

from prepaid.domain import AuthorizationRequest, Merchant, PrepaidCard
from prepaid.exceptions import (
    ExceedsAuthorizedAmountError,
    InvalidStateTransitionError,
    ValidationError,
)


def make_request(request_id: int = 1, amount: int = 500, card_id: int = 1, approved: bool = False):
    request = AuthorizationRequest(request_id=request_id, card_id=card_id, merchant_id=1, original_amount=amount)
    if approved:
        request.approve()
    return request


class TestPrepaidCard:
    """Tests for the card ledger."""

    def test_new_card_is_empty_and_inactive(self):
        card = PrepaidCard(card_id=1, owner_id=1)

        assert card.amount_loaded == 0
        assert card.amount_refunded == 0
        assert card.available_balance() == 0
        assert card.amount_blocked() == 0
        assert card.active is False
        assert card.earmarked == {}

    def test_loads_accumulate_and_activate(self):
        """Test that amount loaded is the sum of every load."""
        card = PrepaidCard(card_id=1, owner_id=1)

        for amount in (600, 1, 250, 9999):
            card.load_money(amount)

        assert card.amount_loaded == 600 + 1 + 250 + 9999
        assert card.active is True

    @pytest.mark.parametrize("amount", [0, -100, 1.5, "100", True])
    def test_load_rejects_invalid_amounts(self, amount):
        card = PrepaidCard(card_id=1, owner_id=1)

        with pytest.raises(ValidationError):
            card.load_money(amount)

        assert card.amount_loaded == 0
        assert card.active is False

    def test_blocked_balance_sums_authorized_amounts(self):
        card = PrepaidCard(card_id=1, owner_id=1)
        card.load_money(1000)
        first = make_request(1, 300, approved=True)
        second = make_request(2, 200, approved=True)
        card.earmark(first)
        card.earmark(second)

        assert card.amount_blocked() == 500
        assert card.available_balance() == 500

        # Blocked balance follows the live authorized amount
        second.reverse(50)
        assert card.amount_blocked() == 450
        assert card.available_balance() == 550

    def test_earmark_is_keyed_by_request_id(self):
        """Test that earmarking the same request twice does not double-block."""
        card = PrepaidCard(card_id=1, owner_id=1)
        card.load_money(1000)
        request = make_request(7, 400, approved=True)

        card.earmark(request)
        card.earmark(request)

        assert list(card.earmarked) == [7]
        assert card.amount_blocked() == 400

    def test_remove_earmarked_is_noop_when_absent(self):
        card = PrepaidCard(card_id=1, owner_id=1)
        request = make_request()

        card.remove_earmarked(request)
        card.earmark(request)
        card.remove_earmarked(request)

        assert card.is_earmarked(request) is False

    def test_capture_debits_loaded_amount(self):
        card = PrepaidCard(card_id=1, owner_id=1)
        card.load_money(600)

        card.capture(250)

        assert card.amount_loaded == 350

    def test_refund_reduces_available_balance(self):
        card = PrepaidCard(card_id=1, owner_id=1)
        card.load_money(1000)
        card.earmark(make_request(1, 300, approved=True))

        card.receive_refund(200)

        assert card.amount_refunded == 200
        assert card.available_balance() == card.amount_loaded - card.amount_blocked() - card.amount_refunded
        assert card.available_balance() == 500


class TestAuthorizationRequest:
    """Tests for per-hold bookkeeping."""

    def test_new_request_is_unapproved(self):
        request = make_request(amount=500)

        assert request.approved is False
        assert request.amount_captured == 0
        assert request.amount_reversed == 0
        assert request.get_authorized_amount() == 500

    @pytest.mark.parametrize("amount", [0, -1])
    def test_original_amount_must_be_positive(self, amount):
        with pytest.raises(ValidationError):
            make_request(amount=amount)

    def test_approve_is_idempotent(self):
        once = make_request()
        once.approve()
        twice = make_request()
        twice.approve()
        twice.approve()

        assert once == twice
        assert twice.approved is True

    def test_authorized_amount_excludes_captures_and_reversals(self):
        request = make_request(amount=1000, approved=True)

        request.mark_as_captured(300)
        request.reverse(200)

        assert request.amount_captured == 300
        assert request.amount_reversed == 200
        assert request.get_authorized_amount() == 500
        assert request.is_closed is False

    def test_request_closes_when_nothing_remains(self):
        request = make_request(amount=500, approved=True)

        request.mark_as_captured(300)
        request.reverse(200)

        assert request.get_authorized_amount() == 0
        assert request.is_closed is True

    def test_cannot_settle_unapproved_request(self):
        request = make_request(amount=500)

        with pytest.raises(InvalidStateTransitionError):
            request.mark_as_captured(100)
        with pytest.raises(InvalidStateTransitionError):
            request.reverse(100)

        assert request.get_authorized_amount() == 500

    def test_cannot_capture_past_authorized_amount(self):
        request = make_request(amount=500, approved=True)
        request.mark_as_captured(400)

        with pytest.raises(ExceedsAuthorizedAmountError) as exc_info:
            request.mark_as_captured(101)

        assert exc_info.value.authorized == 100
        assert exc_info.value.requested == 101
        assert request.amount_captured == 400

    def test_cannot_reverse_past_authorized_amount(self):
        request = make_request(amount=500, approved=True)

        with pytest.raises(ExceedsAuthorizedAmountError):
            request.reverse(501)

        assert request.amount_reversed == 0

    def test_exceeds_authorized_amount_is_a_validation_error(self):
        request = make_request(amount=500, approved=True)

        with pytest.raises(ValidationError):
            request.reverse(1000)


class TestMerchant:
    def test_receive_accumulates_balance(self):
        merchant = Merchant(merchant_id=3)

        merchant.receive(300)
        merchant.receive(200)

        assert merchant.balance == 500

    def test_receive_rejects_non_positive_amount(self):
        merchant = Merchant(merchant_id=3)

        with pytest.raises(ValidationError):
            merchant.receive(0)
