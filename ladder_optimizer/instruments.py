"""Instrument name and expiry label parsing.

Exchange option names look like BTC-27DEC24-60000-P:
underlying, expiry label (DMMMYY), strike, and C/P.
"""

import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

from .constants import SETTLEMENT_HOUR_UTC
from .exceptions import InstrumentParseError
from .models import OptionQuote

logger = logging.getLogger(__name__)

_MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

_EXPIRY_PATTERN = re.compile(r"^(\d{1,2})([A-Z]{3})(\d{2})$")

_OPTION_TYPES = {"C": "call", "P": "put"}

_SECONDS_PER_DAY = 86400


def parse_instrument(name: str) -> Optional[tuple[str, float, str]]:
    """
    Split an instrument name into (expiry label, strike, option type).

    Args:
        name: Instrument name, e.g. "BTC-27DEC24-60000-P"

    Returns:
        ("27DEC24", 60000.0, "put"), or None if the name is not an option
    """
    parts = name.split("-")
    if len(parts) != 4:
        return None

    _, expiry, strike_text, type_code = parts
    option_type = _OPTION_TYPES.get(type_code.upper())
    if option_type is None:
        return None

    try:
        strike = float(strike_text)
    except ValueError:
        return None

    return expiry, strike, option_type


def expiry_to_datetime(label: str) -> datetime:
    """
    Settlement datetime of an expiry label.

    Args:
        label: Expiry label such as "27DEC24" or "7JUN24"

    Returns:
        Timezone-aware UTC datetime at the settlement hour

    Raises:
        InstrumentParseError: If the label is malformed
    """
    match = _EXPIRY_PATTERN.match(label.upper())
    if not match:
        raise InstrumentParseError(f"Invalid expiry label: {label}")

    day, month_code, year = match.groups()
    month = _MONTHS.get(month_code)
    if month is None:
        raise InstrumentParseError(f"Unknown month in expiry label: {label}")

    try:
        return datetime(
            2000 + int(year), month, int(day), SETTLEMENT_HOUR_UTC, tzinfo=timezone.utc
        )
    except ValueError as e:
        raise InstrumentParseError(f"Invalid expiry label {label}: {e}") from e


def days_to_expiry(expiry_at: datetime, now: datetime) -> int:
    """
    Calendar days until expiry, rounded up.

    Returns:
        Days to expiry (0 once expired)
    """
    seconds = (expiry_at - now).total_seconds()
    return max(0, math.ceil(seconds / _SECONDS_PER_DAY))


def quote_from_book_summary(
    item: dict[str, Any],
    now: datetime,
    strike_multiple: Optional[float] = None,
) -> Optional[OptionQuote]:
    """
    Build an OptionQuote from an exchange book-summary record.

    Args:
        item: Record with instrument_name, mark_price, mark_iv, underlying_price
        now: Current time (timezone-aware)
        strike_multiple: Skip strikes that are not multiples of this

    Returns:
        OptionQuote, or None when the record is unusable
    """
    if not isinstance(item, dict):
        logger.debug(f"Skipping non-mapping book-summary record: {item!r}")
        return None

    name = str(item.get("instrument_name", ""))
    parsed = parse_instrument(name)
    if parsed is None:
        logger.debug(f"Skipping unparsable instrument '{name}'")
        return None

    expiry, strike, option_type = parsed
    try:
        mark_price = float(item.get("mark_price") or 0)
        underlying_price = float(item.get("underlying_price") or 0)
        mark_iv = float(item.get("mark_iv") or 0)
    except (TypeError, ValueError) as e:
        logger.debug(f"Skipping {name}: invalid price field ({e})")
        return None

    if mark_price <= 0 or underlying_price <= 0:
        return None
    if strike_multiple and strike % strike_multiple != 0:
        return None

    try:
        expiry_at = expiry_to_datetime(expiry)
    except InstrumentParseError as e:
        logger.debug(f"Skipping {name}: {e}")
        return None

    dte = days_to_expiry(expiry_at, now)
    if dte <= 0:
        return None

    return OptionQuote(
        instrument=name,
        strike=strike,
        expiry=expiry,
        expiry_at=expiry_at,
        option_type=option_type,
        mark_price=mark_price,
        mark_iv=mark_iv,
        underlying_price=underlying_price,
        dte=dte,
    )
