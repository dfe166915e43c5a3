"""Tests for display helpers and configuration."""

from decimal import Decimal

import pytest

from eggfarm.config import AppSettings, StorageSettings
from eggfarm.formatting import format_currency, reminder_message, whatsapp_link
from eggfarm.models import OutstandingBalance


@pytest.fixture
def app_settings():
    return AppSettings(currency_symbol="Rs", currency_decimals=0)


def row(balance, party="CUSTOMER", kind="CUSTOMER", name="Ali"):
    return OutstandingBalance(party_id="x", name=name, party=party, kind=kind, balance=Decimal(balance))


class TestFormatCurrency:
    """Tests for amount formatting."""

    def test_thousands_separator(self, app_settings):
        """Test the default rupee format."""
        assert format_currency(Decimal("1000"), app_settings) == "Rs 1,000"
        assert format_currency(1234567, app_settings) == "Rs 1,234,567"

    def test_rounds_half_up(self, app_settings):
        """Test rounding to whole rupees."""
        assert format_currency(Decimal("99.5"), app_settings) == "Rs 100"
        assert format_currency(Decimal("99.49"), app_settings) == "Rs 99"

    def test_negative(self, app_settings):
        """Test the sign goes in front of the symbol."""
        assert format_currency(Decimal("-250"), app_settings) == "-Rs 250"

    def test_configured_decimals(self):
        """Test a different symbol and precision."""
        settings = AppSettings(currency_symbol="$", currency_decimals=2)
        assert format_currency(Decimal("12.5"), settings) == "$ 12.50"


class TestReminders:
    """Tests for WhatsApp reminder text and links."""

    def test_customer_owes(self, app_settings):
        """Test the reminder to a customer with a receivable."""
        text = reminder_message(row("400"), "Nova Farms", app_settings)
        assert text == (
            "Hello Ali, this is a reminder from Nova Farms regarding your outstanding "
            "balance of Rs 400. Please clear it at your earliest convenience."
        )

    def test_customer_advance(self, app_settings):
        """Test the message to a customer holding an advance."""
        text = reminder_message(row("-50"), "Nova Farms", app_settings)
        assert text == "Hello Ali, your current advance balance with Nova Farms is Rs 50."

    def test_payee_owed(self, app_settings):
        """Test the message to a payee the farm owes."""
        text = reminder_message(row("700", party="PAYEE", kind="VENDOR", name="Feed Co"), "Nova Farms", app_settings)
        assert text == "Hello Feed Co, contacting you regarding the payable amount of Rs 700 from Nova Farms."

    def test_payee_overpaid(self, app_settings):
        """Test the message to an overpaid payee."""
        text = reminder_message(row("-10", party="PAYEE", kind="EMPLOYEE", name="Bilal"), "Nova Farms", app_settings)
        assert text == "Hello Bilal, regarding the overpaid balance of Rs 10."

    def test_payee_tagged_customer_gets_payable_wording(self, app_settings):
        """Test that the payee wording follows the party, not the type tag."""
        text = reminder_message(row("500", party="PAYEE", kind="CUSTOMER", name="Ali Feeds"),
                                "Nova Farms", app_settings)
        assert text == "Hello Ali Feeds, contacting you regarding the payable amount of Rs 500 from Nova Farms."

    def test_link_strips_phone(self):
        """Test that the phone number is reduced to digits."""
        link = whatsapp_link("+92 300-123 4567", "Hi there")
        assert link == "https://wa.me/923001234567?text=Hi%20there"

    def test_short_phone_gives_no_link(self):
        """Test that numbers under ten digits get no link."""
        assert whatsapp_link("12345", "Hi") is None
        assert whatsapp_link(None, "Hi") is None

    def test_message_is_url_encoded(self):
        """Test encoding of reserved characters."""
        link = whatsapp_link("03001234567", "Rs 1,000 & more")
        assert link.endswith("?text=Rs%201%2C000%20%26%20more")


class TestSettings:
    """Tests for configuration classes."""

    def test_log_level_normalized(self):
        """Test that log levels are upper-cased."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        """Test that a bad log level fails validation."""
        with pytest.raises(ValueError):
            AppSettings(log_level="LOUD")

    def test_storage_from_environment(self, monkeypatch, tmp_path):
        """Test reading storage settings from env vars."""
        monkeypatch.setenv("EGGFARM_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("EGGFARM_STORAGE_DATA_DIR", str(tmp_path))
        settings = StorageSettings()
        assert settings.backend == "memory"
        assert settings.data_dir == tmp_path

    def test_unknown_backend_rejected(self):
        """Test that only known backends are accepted."""
        with pytest.raises(ValueError):
            StorageSettings(backend="postgres")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
