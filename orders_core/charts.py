from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from orders_core.formatting import truncate

alt.data_transformers.disable_max_rows()

SITE_COLORS = {"IT": "#27ae60", "FR": "#3498db", "ES": "#f39c12"}
PAYMENT_COLORS = ["#6366f1", "#ec4899", "#14b8a6", "#f97316", "#8b5cf6", "#06b6d4"]
BRAND_LABEL_LEN = 15


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def brands_chart(records: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(records)
    df["label"] = df["brand"].astype(str).apply(lambda s: truncate(s, BRAND_LABEL_LEN))
    hover = alt.selection_point(name="brand_hover", fields=["brand"], on="mouseover", empty=True)
    return (
        alt.Chart(df)
        .mark_bar(color="#3498db", cornerRadiusTopLeft=4, cornerRadiusTopRight=4)
        .encode(
            x=alt.X("label:N", title=None, sort=None, axis=alt.Axis(grid=False, labelAngle=-30)),
            y=alt.Y("quantity:Q", title="Pezzi", axis=alt.Axis(tickMinStep=1, format="d", gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip("brand:N", title="Brand"), alt.Tooltip("quantity:Q", title="Pezzi", format=",")],
        )
        .add_params(hover)
        .properties(height=260)
    )


def payment_chart(records: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(records)
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=60, stroke="#fff", strokeWidth=3, cornerRadius=6, padAngle=0.02)
        .encode(
            theta=alt.Theta("orders:Q", stack=True),
            color=alt.Color(
                "payment_method:N",
                sort=None,
                scale=alt.Scale(range=PAYMENT_COLORS),
                legend=alt.Legend(orient="bottom", title=None, symbolType="circle"),
            ),
            tooltip=[alt.Tooltip("payment_method:N", title="Metodo"), alt.Tooltip("orders:Q", title="Ordini")],
        )
        .properties(height=260)
    )


def daily_chart(records: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(records)
    base = alt.Chart(df).encode(x=alt.X("date:T", title=None, axis=alt.Axis(format="%d/%m", grid=False)))
    revenue = base.mark_line(point={"filled": True, "size": 40}, color="#27ae60").encode(
        y=alt.Y("revenue:Q", title="Fatturato", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
        tooltip=[
            alt.Tooltip("date:T", title="Data", format="%d/%m/%Y"),
            alt.Tooltip("orders:Q", title="Ordini"),
            alt.Tooltip("revenue:Q", title="Fatturato", format=",.2f"),
        ],
    )
    orders = base.mark_bar(opacity=0.3, color="#3498db").encode(
        y=alt.Y("orders:Q", title="Ordini", axis=alt.Axis(tickMinStep=1, format="d", grid=False)),
    )
    return alt.layer(orders, revenue).resolve_scale(y="independent").properties(height=260)


def products_chart(records: List[Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(records)
    return (
        alt.Chart(df)
        .mark_bar(color="#8b5cf6")
        .encode(
            y=alt.Y("name:N", title=None, sort=None),
            x=alt.X("revenue:Q", title="Fatturato", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[
                alt.Tooltip("name:N", title="Prodotto"),
                alt.Tooltip("quantity:Q", title="Pezzi"),
                alt.Tooltip("revenue:Q", title="Fatturato", format=",.2f"),
            ],
        )
        .properties(height=300)
    )


def site_revenue_chart(site_kpis: Dict[str, Dict[str, Any]]) -> alt.Chart:
    df = pd.DataFrame([{"site": site, **vals} for site, vals in site_kpis.items()])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("site:N", title=None, sort=list(site_kpis), axis=alt.Axis(grid=False)),
            y=alt.Y("revenue:Q", title="Fatturato", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(
                "site:N",
                scale=alt.Scale(domain=list(SITE_COLORS), range=list(SITE_COLORS.values())),
                legend=None,
            ),
            tooltip=[alt.Tooltip("site:N", title="Sito"), alt.Tooltip("orders:Q", title="Ordini"), alt.Tooltip("revenue:Q", title="Fatturato", format=",.2f")],
        )
        .properties(height=200)
    )
