"""
Display helpers.

Formatting preferences are passed in explicitly (an AppSettings instance);
nothing here reads global UI state.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union
from urllib.parse import quote

from eggfarm.config import AppSettings, get_settings
from eggfarm.models import OutstandingBalance


MIN_PHONE_DIGITS = 10
WHATSAPP_URL = "https://wa.me/{phone}?text={text}"


def format_currency(
    amount: Union[Decimal, int, float],
    settings: Optional[AppSettings] = None,
) -> str:
    """
    Format an amount the way the farm reads it, e.g. "Rs 1,000".

    Rounds half away from zero to `currency_decimals` places.
    """
    settings = settings or get_settings().app
    value = Decimal(str(amount))
    exponent = Decimal(1).scaleb(-settings.currency_decimals)
    value = value.quantize(exponent, rounding=ROUND_HALF_UP)

    sign = "-" if value < 0 else ""
    digits = f"{abs(value):,.{settings.currency_decimals}f}"
    return f"{sign}{settings.currency_symbol} {digits}"


def reminder_message(
    row: OutstandingBalance,
    farm_name: str,
    settings: Optional[AppSettings] = None,
) -> str:
    """Text of a payment reminder for one outstanding balance."""
    amount = format_currency(row.amount, settings)

    if row.is_customer:
        if row.balance > 0:
            return (
                f"Hello {row.name}, this is a reminder from {farm_name} regarding "
                f"your outstanding balance of {amount}. "
                "Please clear it at your earliest convenience."
            )
        return f"Hello {row.name}, your current advance balance with {farm_name} is {amount}."

    if row.balance > 0:
        return (
            f"Hello {row.name}, contacting you regarding the payable amount "
            f"of {amount} from {farm_name}."
        )
    return f"Hello {row.name}, regarding the overpaid balance of {amount}."


def whatsapp_link(phone: Optional[str], message: str) -> Optional[str]:
    """
    wa.me link that opens a chat with `message` prefilled.

    Returns None when the phone number has fewer than 10 digits.
    """
    digits = "".join(ch for ch in (phone or "") if ch.isdigit())
    if len(digits) < MIN_PHONE_DIGITS:
        return None
    return WHATSAPP_URL.format(phone=digits, text=quote(message, safe=""))
