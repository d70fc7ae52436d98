from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from orders_core.data import PLACEHOLDER, rank_frame, valid_orders
from orders_core.filters import DashboardFilters
from orders_core.formatting import translate_status

TOP_CUSTOMERS = 20
RECENT_ORDERS = 50


def rank_customers(orders: pd.DataFrame, *, limit: Optional[int] = TOP_CUSTOMERS) -> List[Dict[str, Any]]:
    valid = valid_orders(orders)
    if valid.empty:
        return []
    with_email = valid[valid["customer_email"] != ""]
    if with_email.empty:
        return []
    grouped = (
        with_email.groupby("customer_email", sort=False)
        .agg(name=("customer_name", "first"), orders=("order_key", "size"), total=("total", "sum"))
        .reset_index()
        .rename(columns={"customer_email": "email"})
    )
    # Name comes from the first order seen for the email.
    grouped["name"] = grouped["name"].where(grouped["name"] != "", grouped["email"])
    ranked = rank_frame(grouped, "total", limit)
    return ranked[["rank", "email", "name", "orders", "total"]].to_dict(orient="records")


def recent_orders(orders: pd.DataFrame, *, limit: int = RECENT_ORDERS) -> List[Dict[str, Any]]:
    """Newest filtered orders of any status."""
    if orders.empty:
        return []
    recent = orders.sort_values("created_at", ascending=False, na_position="last", kind="stable").head(limit)
    customer = recent["customer_name"].where(recent["customer_name"] != "", recent["customer_email"])
    out = pd.DataFrame(
        {
            "number": recent["number"],
            "site": recent["site"],
            "date_created": recent["date_created"],
            "customer": customer.where(customer != "", PLACEHOLDER),
            "status": recent["status"],
            "status_label": recent["status"].apply(translate_status),
            "total": recent["total"],
        }
    )
    return out.to_dict(orient="records")


def compute_customers(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    orders: pd.DataFrame = ctx.get("filtered_orders", pd.DataFrame())
    return {
        "filters": asdict(filters),
        "top_customers": rank_customers(orders),
        "recent_orders": recent_orders(orders),
    }
