from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Optional

import pandas as pd

from orders_core.charts import brands_chart, payment_chart, products_chart, to_vega_spec
from orders_core.data import rank_frame, valid_items, valid_orders
from orders_core.filters import DashboardFilters

BrandMetric = Literal["quantity", "revenue"]

TOP_BRANDS = 10
TOP_PRODUCTS = 10


def rank_brands(
    orders: pd.DataFrame,
    items: pd.DataFrame,
    *,
    metric: BrandMetric = "quantity",
    limit: Optional[int] = TOP_BRANDS,
) -> List[Dict[str, Any]]:
    base = valid_items(orders, items)
    if base.empty:
        return []
    grouped = (
        base.groupby("brand", sort=False)
        .agg(quantity=("quantity", "sum"), revenue=("total", "sum"))
        .reset_index()
    )
    return rank_frame(grouped, metric, limit).to_dict(orient="records")


def rank_products(orders: pd.DataFrame, items: pd.DataFrame, *, limit: Optional[int] = TOP_PRODUCTS) -> List[Dict[str, Any]]:
    base = valid_items(orders, items)
    if base.empty:
        return []
    grouped = (
        base.groupby("name", sort=False)
        .agg(quantity=("quantity", "sum"), revenue=("total", "sum"))
        .reset_index()
    )
    return rank_frame(grouped, "revenue", limit).to_dict(orient="records")


def rank_payment_methods(orders: pd.DataFrame) -> List[Dict[str, Any]]:
    valid = valid_orders(orders)
    if valid.empty:
        return []
    grouped = valid.groupby("payment_label", sort=False).size().reset_index(name="orders")
    grouped = grouped.rename(columns={"payment_label": "payment_method"})
    return rank_frame(grouped, "orders").to_dict(orient="records")


def compute_rankings(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    orders: pd.DataFrame = ctx.get("filtered_orders", pd.DataFrame())
    items: pd.DataFrame = ctx.get("filtered_items", pd.DataFrame())

    by_quantity = rank_brands(orders, items, metric="quantity")
    by_revenue = rank_brands(orders, items, metric="revenue")
    products = rank_products(orders, items)
    payments = rank_payment_methods(orders)

    charts: Dict[str, Any] = {}
    if by_quantity:
        charts["brands"] = to_vega_spec(brands_chart(by_quantity))
    if products:
        charts["products"] = to_vega_spec(products_chart(products))
    if payments:
        charts["payment"] = to_vega_spec(payment_chart(payments))

    return {
        "filters": asdict(filters),
        "brands_by_quantity": by_quantity,
        "brands_by_revenue": by_revenue,
        "products": products,
        "payment_methods": payments,
        "charts": charts,
    }
