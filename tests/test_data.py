"""Tests for loading and normalizing the orders file (orders_core.data)."""
import json

import pandas as pd
import pytest

from orders_core.data import (
    MAX_QUANTITY,
    PLACEHOLDER,
    DataUnavailableError,
    load_dashboard_data,
    load_state,
    normalize_orders,
    parse_timestamp,
    prepare_context,
    rank_frame,
)
from orders_core.filters import DashboardFilters

from conftest import NOW, write_orders_file


# --- normalize_orders ---


def test_normalize_orders_shapes(frames):
    orders, items = frames
    assert len(orders) == 6
    assert len(items) == 7
    assert orders["order_key"].tolist() == [0, 1, 2, 3, 4, 5]


def test_normalize_orders_fallbacks(frames):
    orders, items = frames
    by_key = orders.set_index("order_key")
    assert by_key.loc[0, "payment_label"] == "PayPal"
    assert by_key.loc[2, "payment_label"] == "stripe"
    assert by_key.loc[4, "payment_label"] == PLACEHOLDER
    assert by_key.loc[3, "customer_email"] == ""
    assert by_key.loc[5, "customer_name"] == ""
    assert items[items["name"] == "Wallet"]["brand"].tolist() == [PLACEHOLDER]


def test_normalize_orders_dates(frames):
    orders, _ = frames
    by_key = orders.set_index("order_key")
    assert by_key.loc[0, "created_at"] == pd.Timestamp("2026-10-17T10:00:00")
    assert by_key.loc[0, "order_date"] == "2026-10-17"
    assert pd.isna(by_key.loc[5, "created_at"])
    assert by_key.loc[5, "order_date"] == ""


def test_normalize_orders_coerces_numbers():
    orders, items = normalize_orders(
        [
            {
                "id": 1,
                "status": "completed",
                "total": "12.50",
                "items": [{"name": "A", "quantity": "2", "total": "x"}, {"name": "B", "quantity": -1, "total": None}],
            }
        ]
    )
    assert orders.loc[0, "total"] == 12.5
    assert items["quantity"].tolist() == [2, 0]
    assert items["total"].tolist() == [0.0, 0.0]


def test_normalize_orders_skips_non_dict_entries():
    orders, items = normalize_orders([None, {"id": 5, "status": "completed", "items": ["junk"]}])
    assert orders["order_key"].tolist() == [1]
    assert items.empty


@pytest.mark.parametrize("items", [5, "Bag", {"name": "Bag"}, None])
def test_normalize_orders_non_list_items_means_no_items(items):
    orders, frame = normalize_orders([{"id": 1, "status": "completed", "total": 10, "items": items}])
    assert orders["order_key"].tolist() == [0]
    assert frame.empty


def test_normalize_orders_clamps_huge_quantity():
    _, items = normalize_orders(
        [{"id": 1, "status": "completed", "items": [{"name": "A", "quantity": 1e30, "total": 5}]}]
    )
    assert items["quantity"].tolist() == [MAX_QUANTITY]


def test_normalize_orders_number_falls_back_to_id():
    orders, _ = normalize_orders([{"id": 42, "status": "completed"}])
    assert orders.loc[0, "number"] == 42


def test_normalize_orders_empty():
    orders, items = normalize_orders([])
    assert orders.empty and items.empty
    assert "created_at" in orders.columns


def test_unknown_status_is_kept_verbatim():
    orders, _ = normalize_orders([{"id": 1, "status": "draft-x"}])
    assert orders.loc[0, "status"] == "draft-x"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-10-17T10:00:00", pd.Timestamp("2026-10-17T10:00:00")),
        ("2026-10-17T10:00:00+02:00", pd.Timestamp("2026-10-17T10:00:00")),
        ("2026-10-17T10:00:00Z", pd.Timestamp("2026-10-17T12:00:00")),
        ("2026-10-17T10:00:00-04:00", pd.Timestamp("2026-10-17T16:00:00")),
    ],
)
def test_parse_timestamp_local_wall_clock(rome_tz, value, expected):
    parsed = parse_timestamp(value)
    assert parsed.tzinfo is None
    assert parsed == expected


@pytest.mark.parametrize("value", [None, "", "   ", "garbage"])
def test_parse_timestamp_invalid(value):
    assert pd.isna(parse_timestamp(value))


# --- rank_frame ---


def test_rank_frame_ties_keep_row_order():
    df = pd.DataFrame({"key": ["a", "b", "c", "d"], "metric": [1, 3, 1, 3]})
    ranked = rank_frame(df, "metric", limit=3)
    assert ranked["key"].tolist() == ["b", "d", "a"]
    assert ranked["rank"].tolist() == [1, 2, 3]


# --- load_dashboard_data ---


def test_load_dashboard_data(data_ctx, orders_file):
    assert set(data_ctx) == {"source", "orders", "items", "last_update"}
    assert data_ctx["source"] == str(orders_file)
    assert len(data_ctx["orders"]) == 6
    assert data_ctx["last_update"] == pd.Timestamp("2026-10-18T06:30:00")


def test_load_missing_orders_key_is_empty(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps({"stats": {}}), encoding="utf-8")
    ctx = load_dashboard_data(path)
    assert ctx["orders"].empty
    assert ctx["last_update"] is None


def test_load_unparseable_last_update(tmp_path, raw_orders):
    path = write_orders_file(tmp_path / "orders.json", raw_orders, stats={"last_update": "ieri"})
    assert load_dashboard_data(path)["last_update"] is None


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(DataUnavailableError, match="file not found"):
        load_dashboard_data(tmp_path / "missing.json")


def test_load_invalid_json_raises(tmp_path):
    path = tmp_path / "orders.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataUnavailableError, match="invalid JSON"):
        load_dashboard_data(path)


@pytest.mark.parametrize("payload", [[], {"orders": {"a": 1}}])
def test_load_wrong_shape_raises(tmp_path, payload):
    path = tmp_path / "orders.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(DataUnavailableError):
        load_dashboard_data(path)


def test_load_uses_env_path(orders_env):
    assert load_dashboard_data()["source"] == str(orders_env)


def test_load_is_cached_per_file_version(orders_file):
    assert load_dashboard_data(orders_file) is load_dashboard_data(orders_file)


# --- prepare_context / load_state ---


def test_prepare_context_filters_items_with_orders(data_ctx):
    ctx = prepare_context({"period": 7, "site": "IT"}, data_ctx, now=NOW)
    assert ctx["filters"] == DashboardFilters(period=7, site="IT")
    assert ctx["filtered_orders"]["order_key"].tolist() == [0, 1]
    assert sorted(ctx["filtered_items"]["order_key"].unique().tolist()) == [0, 1]
    assert ctx["total_loaded"] == 6


def test_prepare_context_leaves_loaded_frames_untouched(data_ctx):
    before = data_ctx["orders"].copy()
    prepare_context(DashboardFilters(period=7, site="FR"), data_ctx, now=NOW)
    pd.testing.assert_frame_equal(data_ctx["orders"], before)


def test_load_state_available(orders_file):
    state = load_state({"site": "ES"}, orders_file, now=NOW)
    assert state["available"] is True
    assert state["error"] is None
    assert state["filtered_orders"]["order_key"].tolist() == [3]


def test_load_state_unavailable(tmp_path):
    state = load_state({}, tmp_path / "missing.json")
    assert state["available"] is False
    assert "unavailable" in state["error"]
    assert "filtered_orders" not in state


def test_load_state_tolerates_malformed_items(tmp_path, order_factory):
    orders = [
        order_factory(1, "IT", "completed", 40, "2026-10-17T10:00:00"),
        order_factory(2, "FR", "completed", 60, "2026-10-17T11:00:00", items=[{"name": "Bag", "quantity": 1e30}]),
    ]
    orders[0]["items"] = 5
    state = load_state({}, write_orders_file(tmp_path / "orders.json", orders), now=NOW)
    assert state["available"] is True
    assert state["filtered_orders"]["order_key"].tolist() == [0, 1]
    assert state["filtered_items"]["quantity"].tolist() == [MAX_QUANTITY]


def test_load_normalization_failure_is_data_unavailable(tmp_path, raw_orders, monkeypatch):
    def broken(_raw):
        raise TypeError("boom")

    monkeypatch.setattr("orders_core.data.normalize_orders", broken)
    path = write_orders_file(tmp_path / "broken.json", raw_orders)
    with pytest.raises(DataUnavailableError, match="malformed orders"):
        load_dashboard_data(path)
    state = load_state({}, path)
    assert state["available"] is False
