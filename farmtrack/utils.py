from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Optional, Union

import pandas as pd

CENTS = Decimal("0.01")


def to_aware_utc(v: Optional[Union[str, date, datetime]]) -> datetime:
    """Convert input to an aware UTC datetime; None means now."""
    if v is None:
        return datetime.now(timezone.utc)
    if isinstance(v, datetime):
        return v.astimezone(timezone.utc) if v.tzinfo else v.replace(tzinfo=timezone.utc)
    if isinstance(v, date):
        return datetime(v.year, v.month, v.day, tzinfo=timezone.utc)
    ts = pd.to_datetime(v, errors="coerce", utc=True)
    if pd.isna(ts):
        raise ValueError(f"Unparseable timestamp: {v!r}")
    return ts.to_pydatetime()


def to_date(v: Optional[Union[str, date, datetime]]) -> Optional[date]:
    """Reduce a date, datetime or ISO string to a calendar date (UTC)."""
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return to_aware_utc(v).date()
    if isinstance(v, date):
        return v
    return to_aware_utc(v).date()


def is_pure_date(v: Any) -> bool:
    return isinstance(v, date) and not isinstance(v, datetime)


def to_decimal(v: Any) -> Decimal:
    """Decimal from int/float/str without float artefacts (10.1 -> 10.1)."""
    if isinstance(v, Decimal):
        return v
    try:
        return Decimal(str(v))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Not a number: {v!r}") from e


def quantize_cents(v: Any) -> Decimal:
    """Round a currency amount to two decimal places."""
    return to_decimal(v).quantize(CENTS, rounding=ROUND_HALF_UP)


def plain(v: Any) -> Any:
    """Unwrap enum members so 'seeds' and Category.seeds compare equal."""
    return v.value if isinstance(v, Enum) else v
