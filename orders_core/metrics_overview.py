from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from orders_core.charts import site_revenue_chart, to_vega_spec
from orders_core.data import valid_orders
from orders_core.filters import SITES, DashboardFilters


def compute_kpis(orders: pd.DataFrame) -> Dict[str, Any]:
    valid = valid_orders(orders)
    revenue = float(valid["total"].sum()) if not valid.empty else 0.0
    count = int(len(valid))
    emails = valid["customer_email"] if not valid.empty else pd.Series(dtype=str)
    return {
        "revenue": revenue,
        "orders": count,
        "avg_order_value": revenue / count if count > 0 else 0.0,
        "unique_customers": int(emails[emails != ""].nunique()),
    }


def compute_site_kpis(orders: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
    valid = valid_orders(orders)
    out: Dict[str, Dict[str, Any]] = {}
    for site in SITES:
        site_orders = valid[valid["site"] == site] if not valid.empty else valid
        out[site] = {"revenue": float(site_orders["total"].sum()) if not site_orders.empty else 0.0, "orders": int(len(site_orders))}
    return out


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    orders: pd.DataFrame = ctx.get("filtered_orders", pd.DataFrame())
    last_update = ctx.get("last_update")

    kpis = compute_kpis(orders)
    sites = compute_site_kpis(orders)

    charts: Dict[str, Any] = {}
    if kpis["orders"]:
        charts["site_revenue"] = to_vega_spec(site_revenue_chart(sites))

    return {
        "filters": asdict(filters),
        "last_update": last_update.isoformat() if last_update is not None else None,
        "filtered_orders": int(len(orders)),
        "kpis": kpis,
        "sites": sites,
        "charts": charts,
    }
