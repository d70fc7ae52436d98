from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import pandas as pd

SITES: Tuple[str, ...] = ("IT", "FR", "ES")
ALL = "all"
PERIOD_CHOICES: List[Union[str, int]] = [ALL, 7, 30, 90, 365]

Period = Union[str, int]


@dataclass(frozen=True)
class DashboardFilters:
    period: Period = ALL
    site: str = ALL

    @property
    def period_days(self) -> Optional[int]:
        return None if self.period == ALL else int(self.period)


def _as_period(value: object) -> Period:
    if value is None or isinstance(value, bool):
        return ALL
    if isinstance(value, str):
        value = value.strip().lower()
        if not value or value == ALL:
            return ALL
    try:
        days = int(value)  # type: ignore[arg-type]
    except Exception:
        return ALL
    return days if days > 0 else ALL


def _as_site(value: object) -> str:
    if value is None:
        return ALL
    site = str(value).strip()
    if site.lower() == ALL:
        return ALL
    site = site.upper()
    return site if site in SITES else ALL


def to_local_naive(ts: pd.Timestamp) -> pd.Timestamp:
    """Aware timestamps become naive local wall-clock time; naive ones pass through."""
    if ts.tzinfo is None:
        return ts
    return pd.Timestamp(ts.to_pydatetime().astimezone().replace(tzinfo=None))


def normalize_filters(raw: Optional[dict] = None) -> DashboardFilters:
    raw = raw or {}
    return DashboardFilters(period=_as_period(raw.get("period")), site=_as_site(raw.get("site")))


def period_cutoff(filters: DashboardFilters, now: Optional[pd.Timestamp] = None) -> Optional[pd.Timestamp]:
    """Start of the selected window, or None when the period is "all"."""
    days = filters.period_days
    if days is None:
        return None
    now = pd.Timestamp.now() if now is None else to_local_naive(pd.Timestamp(now))
    return now - pd.Timedelta(days=days)


def filter_orders(orders: pd.DataFrame, filters: DashboardFilters, *, now: Optional[pd.Timestamp] = None) -> pd.DataFrame:
    out = orders.copy()
    if out.empty:
        return out

    cutoff = period_cutoff(filters, now)
    if cutoff is not None:
        # NaT compares False, so orders with an unparseable date drop out.
        out = out[out["created_at"] >= cutoff]

    if filters.site != ALL:
        out = out[out["site"] == filters.site]
    return out
