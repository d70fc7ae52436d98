from __future__ import annotations

import json
import logging
import math
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from orders_core.filters import DashboardFilters, filter_orders, normalize_filters, to_local_naive


logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DEFAULT_DATA_FILE = DATA_DIR / "orders.json"
DATA_PATH_ENV = "ORDERS_DATA_PATH"

PLACEHOLDER = "N/D"
MAX_QUANTITY = 2**31 - 1
VALID_STATUSES: Tuple[str, ...] = ("completed", "processing")

ORDER_COLUMNS = [
    "order_key",
    "id",
    "number",
    "site",
    "date_created",
    "created_at",
    "order_date",
    "status",
    "total",
    "payment_label",
    "customer_email",
    "customer_name",
]
ITEM_COLUMNS = ["order_key", "name", "brand", "quantity", "total"]

_DATE_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})")


class DataUnavailableError(Exception):
    """The orders file could not be loaded or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Orders data unavailable ({self.path.name}): {reason}")


def get_data_path() -> Path:
    override = os.getenv(DATA_PATH_ENV, "").strip()
    return Path(override) if override else DEFAULT_DATA_FILE


def file_signature(path: Path) -> Tuple[str, float]:
    return str(path), path.stat().st_mtime


def text_or_empty(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def as_amount(value: object) -> float:
    if value is None or isinstance(value, (dict, list, bool)):
        return 0.0
    try:
        out = float(pd.to_numeric(value, errors="coerce"))
    except Exception:
        return 0.0
    if math.isnan(out) or math.isinf(out):
        return 0.0
    return out


def as_quantity(value: object) -> int:
    return int(min(max(0.0, as_amount(value)), MAX_QUANTITY))


def parse_timestamp(value: object) -> pd.Timestamp:
    """Parse an ISO timestamp; aware values are converted to naive local time."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return pd.NaT
    try:
        ts = pd.to_datetime(value, errors="coerce")
    except Exception:
        return pd.NaT
    if ts is None or pd.isna(ts):
        return pd.NaT
    return to_local_naive(ts)


def calendar_date(raw: str, parsed: pd.Timestamp) -> str:
    match = _DATE_PREFIX.match(raw)
    if match:
        return match.group(1)
    if pd.isna(parsed):
        return ""
    return parsed.strftime("%Y-%m-%d")


def payment_label(order: Dict[str, Any]) -> str:
    return text_or_empty(order.get("payment_method_title")) or text_or_empty(order.get("payment_method")) or PLACEHOLDER


def customer_fields(order: Dict[str, Any]) -> Tuple[str, str]:
    customer = order.get("customer")
    if not isinstance(customer, dict):
        return "", ""
    email = text_or_empty(customer.get("email"))
    name = f"{text_or_empty(customer.get('first_name'))} {text_or_empty(customer.get('last_name'))}".strip()
    return email, name


def normalize_orders(raw_orders: Iterable[object]) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Flatten raw order dicts into an orders frame and a line-items frame.

    `order_key` is the position in the source list; `id` is only unique per
    site, so items are joined back on `order_key`.
    """
    order_records: List[Dict[str, Any]] = []
    item_records: List[Dict[str, Any]] = []
    skipped = 0
    for key, order in enumerate(raw_orders):
        if not isinstance(order, dict):
            skipped += 1
            continue
        raw_date = text_or_empty(order.get("date_created"))
        created_at = parse_timestamp(raw_date)
        email, name = customer_fields(order)
        order_id = order.get("id")
        number = order.get("number")
        order_records.append(
            {
                "order_key": key,
                "id": order_id,
                "number": number if number not in (None, "") else order_id,
                "site": text_or_empty(order.get("site")),
                "date_created": raw_date,
                "created_at": created_at,
                "order_date": calendar_date(raw_date, created_at),
                "status": text_or_empty(order.get("status")),
                "total": as_amount(order.get("total")),
                "payment_label": payment_label(order),
                "customer_email": email,
                "customer_name": name,
            }
        )
        items = order.get("items")
        if not isinstance(items, list):
            items = []
        for item in items:
            if not isinstance(item, dict):
                continue
            item_records.append(
                {
                    "order_key": key,
                    "name": text_or_empty(item.get("name")) or PLACEHOLDER,
                    "brand": text_or_empty(item.get("brand")) or PLACEHOLDER,
                    "quantity": as_quantity(item.get("quantity")),
                    "total": as_amount(item.get("total")),
                }
            )
    if skipped:
        logger.warning("Skipped %d malformed order entries", skipped)

    orders = pd.DataFrame(order_records, columns=ORDER_COLUMNS)
    orders["order_key"] = orders["order_key"].astype(int)
    orders["created_at"] = pd.to_datetime(orders["created_at"], errors="coerce")
    orders["total"] = orders["total"].astype(float)

    items = pd.DataFrame(item_records, columns=ITEM_COLUMNS)
    items = items.astype({"order_key": int, "quantity": int, "total": float})
    return orders, items


def valid_orders(orders: pd.DataFrame) -> pd.DataFrame:
    """Orders counted in revenue and rankings (status completed/processing)."""
    if orders.empty:
        return orders
    return orders[orders["status"].isin(VALID_STATUSES)]


def valid_items(orders: pd.DataFrame, items: pd.DataFrame) -> pd.DataFrame:
    valid = valid_orders(orders)
    if valid.empty or items.empty:
        return items.iloc[0:0]
    return items[items["order_key"].isin(valid["order_key"])]


def rank_frame(df: pd.DataFrame, metric: str, limit: Optional[int] = None) -> pd.DataFrame:
    """Sort descending by `metric`, ties kept in current row order, then cap.

    Callers pass frames grouped with `sort=False`, so current row order is the
    order of first occurrence.
    """
    out = (
        df.assign(_seen=range(len(df)))
        .sort_values([metric, "_seen"], ascending=[False, True])
        .drop(columns="_seen")
    )
    if limit is not None:
        out = out.head(limit)
    out = out.reset_index(drop=True)
    out.insert(0, "rank", range(1, len(out) + 1))
    return out


def read_payload(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
    except OSError as exc:
        raise DataUnavailableError(path, f"cannot read file ({exc.strerror or exc})") from exc
    except ValueError as exc:
        raise DataUnavailableError(path, f"invalid JSON ({exc})") from exc
    if not isinstance(payload, dict):
        raise DataUnavailableError(path, "top-level JSON value is not an object")
    return payload


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[str, float]) -> Dict[str, object]:
    path = Path(files_sig[0])
    payload = read_payload(path)

    raw_orders = payload.get("orders")
    if raw_orders is None:
        raw_orders = []
    if not isinstance(raw_orders, list):
        raise DataUnavailableError(path, "'orders' is not a list")

    try:
        orders, items = normalize_orders(raw_orders)
    except Exception as exc:
        raise DataUnavailableError(path, f"malformed orders ({exc})") from exc

    stats = payload.get("stats")
    stats = stats if isinstance(stats, dict) else {}
    last_update = parse_timestamp(stats.get("last_update"))

    logger.info("Loaded %d orders (%d line items) from %s", len(orders), len(items), path)
    return {
        "source": str(path),
        "orders": orders,
        "items": items,
        "last_update": None if pd.isna(last_update) else last_update,
    }


def load_dashboard_data(path: Optional[Path | str] = None) -> Dict[str, object]:
    path = Path(path) if path else get_data_path()
    try:
        sig = file_signature(path)
    except OSError as exc:
        logger.warning("Orders file not found: %s", path)
        raise DataUnavailableError(path, "file not found") from exc
    try:
        return _load_dashboard_data_cached(sig)
    except DataUnavailableError as exc:
        logger.warning("%s", exc)
        raise


def prepare_context(
    filters: dict | DashboardFilters,
    data_ctx: Dict[str, object],
    *,
    now: Optional[pd.Timestamp] = None,
) -> Dict[str, object]:
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    orders: pd.DataFrame = data_ctx.get("orders", pd.DataFrame(columns=ORDER_COLUMNS))
    items: pd.DataFrame = data_ctx.get("items", pd.DataFrame(columns=ITEM_COLUMNS))

    filtered_orders = filter_orders(orders, filt, now=now)
    filtered_items = items[items["order_key"].isin(filtered_orders["order_key"])].copy() if not items.empty else items.copy()

    return {
        "filters": filt,
        "filtered_orders": filtered_orders,
        "filtered_items": filtered_items,
        "last_update": data_ctx.get("last_update"),
        "total_loaded": int(len(orders)),
    }


def load_state(
    filters: dict | DashboardFilters,
    path: Optional[Path | str] = None,
    *,
    now: Optional[pd.Timestamp] = None,
) -> Dict[str, object]:
    """Load + filter in one step, reporting failure as an explicit state."""
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    try:
        data_ctx = load_dashboard_data(path)
    except DataUnavailableError as exc:
        return {"available": False, "error": str(exc), "filters": filt, "last_update": None}
    ctx = prepare_context(filt, data_ctx, now=now)
    return {"available": True, "error": None, **ctx}
