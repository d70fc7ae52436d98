"""Display formatting for the dashboard (Italian locale, EUR)."""

from __future__ import annotations

from typing import Optional

import pandas as pd

from orders_core.data import PLACEHOLDER

CURRENCY_SYMBOL = "€"

STATUS_LABELS = {
    "completed": "Completato",
    "processing": "In elaborazione",
    "pending": "In attesa",
    "on-hold": "In sospeso",
    "cancelled": "Annullato",
    "refunded": "Rimborsato",
    "failed": "Fallito",
}


def _is_missing(value: object) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value))


def _it_number(value: float, decimals: int) -> str:
    rounded = round(float(value), decimals)
    body = f"{abs(rounded):,.{decimals}f}"
    # 1,234.56 -> 1.234,56
    body = body.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{body}" if rounded < 0 else body


def format_currency(value: object) -> str:
    amount = 0.0 if _is_missing(value) else float(value)  # type: ignore[arg-type]
    return f"{_it_number(amount, 2)} {CURRENCY_SYMBOL}"


def format_currency_short(value: object) -> str:
    amount = 0.0 if _is_missing(value) else float(value)  # type: ignore[arg-type]
    if amount >= 1000:
        return f"{amount / 1000:.1f}k"
    return f"{amount:.0f}"


def format_count(value: object) -> str:
    count = 0 if _is_missing(value) else int(value)  # type: ignore[arg-type]
    return _it_number(count, 0)


def format_date(ts: Optional[pd.Timestamp]) -> str:
    if _is_missing(ts):
        return PLACEHOLDER
    return f"{ts.day}/{ts.month}/{ts.year}"


def format_date_short(ts: Optional[pd.Timestamp]) -> str:
    if _is_missing(ts):
        return PLACEHOLDER
    return ts.strftime("%d/%m")


def format_time(ts: Optional[pd.Timestamp]) -> str:
    if _is_missing(ts):
        return PLACEHOLDER
    return ts.strftime("%H:%M")


def format_last_update(ts: Optional[pd.Timestamp]) -> str:
    if _is_missing(ts):
        return f"Ultimo aggiornamento: {PLACEHOLDER}"
    return f"Ultimo aggiornamento: {format_date(ts)} {format_time(ts)}"


def truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text


def translate_status(status: str) -> str:
    return STATUS_LABELS.get(status, status)
