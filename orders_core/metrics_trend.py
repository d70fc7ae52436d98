from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from orders_core.charts import daily_chart, to_vega_spec
from orders_core.data import valid_orders
from orders_core.filters import DashboardFilters


def compute_daily_series(orders: pd.DataFrame) -> List[Dict[str, Any]]:
    """One point per calendar date with valid orders, oldest first."""
    valid = valid_orders(orders)
    if valid.empty:
        return []
    dated = valid[valid["order_date"] != ""]
    if dated.empty:
        return []
    series = (
        dated.groupby("order_date")
        .agg(orders=("order_key", "size"), revenue=("total", "sum"))
        .reset_index()
        .rename(columns={"order_date": "date"})
        .sort_values("date")
    )
    return series.to_dict(orient="records")


def compute_trend(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    orders: pd.DataFrame = ctx.get("filtered_orders", pd.DataFrame())
    series = compute_daily_series(orders)
    charts: Dict[str, Any] = {}
    if series:
        charts["daily"] = to_vega_spec(daily_chart(series))
    return {"filters": asdict(filters), "series": series, "charts": charts}
