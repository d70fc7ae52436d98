"""
Test fixtures for the orders dashboard.

Provides:
- a fixed "now" so period filters are deterministic
- a sample order list covering every status / fallback rule
- helpers writing the orders JSON file and loading it into a data context
"""
import json
import os
import time
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
import pytest

from orders_core.data import DATA_PATH_ENV, load_dashboard_data, normalize_orders


NOW = pd.Timestamp("2026-10-18T12:00:00")


def _order(
    order_id,
    site,
    status,
    total,
    date_created,
    *,
    customer=None,
    items=None,
    payment_method=None,
    payment_method_title=None,
) -> Dict[str, Any]:
    order = {
        "id": order_id,
        "number": str(order_id),
        "site": site,
        "status": status,
        "total": total,
        "date_created": date_created,
        "items": items or [],
    }
    if customer is not None:
        order["customer"] = customer
    if payment_method is not None:
        order["payment_method"] = payment_method
    if payment_method_title is not None:
        order["payment_method_title"] = payment_method_title
    return order


@pytest.fixture
def order_factory():
    return _order


@pytest.fixture
def raw_orders() -> List[Dict[str, Any]]:
    """Six orders; valid ones are #0, #2, #4 and #5 (by position)."""
    return [
        _order(
            1, "IT", "completed", 100, "2026-10-17T10:00:00",
            customer={"email": "anna@example.com", "first_name": "Anna", "last_name": "Verdi"},
            items=[
                {"name": "Bag", "brand": "Alfa", "quantity": 1, "total": 60},
                {"name": "Belt", "brand": "Beta", "quantity": 2, "total": 40},
            ],
            payment_method="paypal", payment_method_title="PayPal",
        ),
        _order(
            2, "IT", "pending", 999, "2026-10-17T11:00:00",
            customer={"email": "bruno@example.com", "first_name": "Bruno", "last_name": ""},
            items=[{"name": "Bag", "brand": "Alfa", "quantity": 5, "total": 999}],
            payment_method_title="Bonifico",
        ),
        # Same id as the IT order above: ids are only unique per site.
        _order(
            1, "FR", "processing", 50, "2026-10-10T09:00:00",
            customer={"email": "anna@example.com", "first_name": "Anne", "last_name": "V."},
            items=[{"name": "Wallet", "quantity": 3, "total": 50}],
            payment_method="stripe",
        ),
        _order(
            7, "ES", "cancelled", 30, "2026-09-01T08:00:00",
            items=[{"name": "Belt", "brand": "Beta", "quantity": 1, "total": 30}],
            payment_method_title="Tarjeta",
        ),
        _order(
            3, "IT", "completed", 20, "2026-08-01T08:00:00",
            customer={"email": "", "first_name": "Zed"},
            items=[{"name": "Belt", "brand": "Beta", "quantity": 1, "total": 20}],
        ),
        _order(
            9, "FR", "completed", 80, "not a date",
            customer={"email": "carla@example.com"},
            items=[{"name": "Bag", "brand": "Alfa", "quantity": 1, "total": 80}],
            payment_method_title="PayPal",
        ),
    ]


def write_orders_file(path: Path, orders, stats=None) -> Path:
    payload: Dict[str, Any] = {"orders": orders}
    if stats is not None:
        payload["stats"] = stats
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def orders_file(tmp_path, raw_orders) -> Path:
    return write_orders_file(tmp_path / "orders.json", raw_orders, stats={"last_update": "2026-10-18T06:30:00"})


@pytest.fixture
def data_ctx(orders_file) -> Dict[str, Any]:
    return load_dashboard_data(orders_file)


@pytest.fixture
def frames(raw_orders):
    return normalize_orders(raw_orders)


@pytest.fixture
def orders_env(monkeypatch, orders_file) -> Path:
    monkeypatch.setenv(DATA_PATH_ENV, str(orders_file))
    return orders_file


@pytest.fixture
def rome_tz():
    """Run with the process local timezone set to Europe/Rome (CEST, +02:00, in mid-October)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "Europe/Rome"
    time.tzset()
    yield
    if previous is None:
        os.environ.pop("TZ", None)
    else:
        os.environ["TZ"] = previous
    time.tzset()
