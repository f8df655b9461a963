"""Tests for money conversion, configuration, logging and the payout channels."""

import os
from decimal import Decimal
from unittest.mock import patch

import pytest
import structlog

from prepaid.config import Settings
from prepaid.domain import Merchant
from prepaid.exceptions import MerchantNotFoundError
from prepaid.logging_config import AmountRenderer, build_processors, configure_logging
from prepaid.money import format_amount, from_minor_units, to_minor_units
from prepaid.payout import LoggingPayoutChannel, MerchantBalancePayoutChannel
from prepaid.service import InMemoryStorage


class TestMoney:
    @pytest.mark.parametrize(
        "amount, expected",
        [
            (Decimal("6.00"), 600),
            (Decimal("0.01"), 1),
            ("12.5", 1250),
            (3, 300),
            (Decimal("0.005"), 0),
            (Decimal("0.015"), 2),
        ],
    )
    def test_to_minor_units(self, amount, expected):
        assert to_minor_units(amount) == expected

    def test_from_minor_units(self):
        assert from_minor_units(600) == Decimal("6.00")
        assert from_minor_units(1) == Decimal("0.01")
        assert from_minor_units(-250) == Decimal("-2.50")

    def test_format_amount(self):
        assert format_amount(1234, "GBP") == "12.34 GBP"


class TestSettings:
    def test_default_values(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.log_level == "INFO"
        assert settings.environment == "development"
        assert settings.service_name == "prepaid-card-ledger"
        assert settings.currency == "GBP"
        assert settings.cors_allow_origins == ["*"]

    def test_environment_overrides(self):
        env_vars = {"LOG_LEVEL": "DEBUG", "ENVIRONMENT": "production", "CURRENCY": "EUR"}

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings(_env_file=None)

        assert settings.log_level == "DEBUG"
        assert settings.environment == "production"
        assert settings.currency == "EUR"


class TestPayoutChannels:
    def test_merchant_balance_channel_credits_merchant(self):
        storage = InMemoryStorage()
        storage.merchants[1] = Merchant(merchant_id=1)
        channel = MerchantBalancePayoutChannel(storage.get_merchant)

        channel.send(1, 300)
        channel.send(1, 200)

        assert storage.merchants[1].balance == 500
        assert [(p.merchant_id, p.amount) for p in channel.payouts] == [(1, 300), (1, 200)]

    def test_merchant_balance_channel_unknown_merchant(self):
        channel = MerchantBalancePayoutChannel(InMemoryStorage().get_merchant)

        with pytest.raises(MerchantNotFoundError):
            channel.send(5, 100)

        assert channel.payouts == []

    def test_logging_channel_accepts_payouts(self):
        LoggingPayoutChannel().send(1, 100)


class TestLoggingConfig:
    def test_amount_renderer_formats_minor_units(self):
        renderer = AmountRenderer("GBP")

        event = renderer(None, "info", {"event": "capture_completed", "amount": 300, "remaining": 0, "card_id": 7})

        assert event["amount"] == "3.00 GBP"
        assert event["remaining"] == "0.00 GBP"
        assert event["card_id"] == 7

    def test_amount_renderer_leaves_formatted_values(self):
        renderer = AmountRenderer("GBP")

        event = renderer(None, "info", {"event": "money_loaded", "amount": "6.00 GBP"})

        assert event["amount"] == "6.00 GBP"

    def test_production_renders_json(self):
        settings = Settings(_env_file=None, environment="production", currency="EUR")

        processors = build_processors(settings)

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert any(isinstance(p, AmountRenderer) and p.currency == "EUR" for p in processors)

    def test_configure_binds_ledger_context(self):
        settings = Settings(_env_file=None, service_name="ledger-test", currency="EUR")

        try:
            configure_logging(settings)
            context = structlog.contextvars.get_contextvars()
        finally:
            structlog.contextvars.clear_contextvars()

        assert context["service"] == "ledger-test"
        assert context["currency"] == "EUR"
