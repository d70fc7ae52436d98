from __future__ import annotations

from typing import Any, Dict

from orders_core.filters import DashboardFilters
from orders_core.metrics_customers import compute_customers
from orders_core.metrics_overview import compute_overview
from orders_core.metrics_rankings import compute_rankings
from orders_core.metrics_trend import compute_trend


def compute_dashboard(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Every page payload for one filter cycle, charts merged into one dict."""
    overview = compute_overview(filters, ctx)
    rankings = compute_rankings(filters, ctx)
    trend = compute_trend(filters, ctx)
    customers = compute_customers(filters, ctx)
    return {
        "filters": overview["filters"],
        "last_update": overview["last_update"],
        "filtered_orders": overview["filtered_orders"],
        "kpis": overview["kpis"],
        "sites": overview["sites"],
        "brands_by_quantity": rankings["brands_by_quantity"],
        "brands_by_revenue": rankings["brands_by_revenue"],
        "products": rankings["products"],
        "payment_methods": rankings["payment_methods"],
        "series": trend["series"],
        "top_customers": customers["top_customers"],
        "recent_orders": customers["recent_orders"],
        "charts": {**overview["charts"], **rankings["charts"], **trend["charts"]},
    }
