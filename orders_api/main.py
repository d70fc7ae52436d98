from __future__ import annotations

import logging
import math
import os
from typing import Any, Callable, Dict

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from orders_api.schemas import DashboardFiltersModel, MetaListResponse, MetaStatusResponse
from orders_core.data import DataUnavailableError, load_dashboard_data, prepare_context
from orders_core.filters import PERIOD_CHOICES, SITES, DashboardFilters, normalize_filters
from orders_core.metrics_customers import compute_customers, rank_customers, recent_orders
from orders_core.metrics_dashboard import compute_dashboard
from orders_core.metrics_overview import compute_overview
from orders_core.metrics_rankings import compute_rankings
from orders_core.metrics_trend import compute_trend


app = FastAPI(title="Orders Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("ORDERS_API_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

Compute = Callable[[DashboardFilters, Dict[str, Any]], Dict[str, Any]]


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _page(name: str, filters: DashboardFiltersModel, compute: Compute) -> JSONResponse:
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
        return _json(compute(f, ctx))
    except DataUnavailableError as exc:
        return _error(exc, 503)
    except Exception as exc:
        logger.exception("%s failed", name)
        return _error(exc, 500)


@app.get("/meta/status")
def meta_status():
    try:
        data_ctx = load_dashboard_data()
    except DataUnavailableError as exc:
        return _json(MetaStatusResponse(available=False, error=str(exc)).model_dump())
    last_update = data_ctx.get("last_update")
    status = MetaStatusResponse(
        available=True,
        last_update=last_update.isoformat() if last_update is not None else None,
        orders=int(len(data_ctx["orders"])),
    )
    return _json(status.model_dump())


@app.get("/meta/sites")
def meta_sites():
    return _json(MetaListResponse(values=list(SITES)).model_dump())


@app.get("/meta/periods")
def meta_periods():
    return _json(MetaListResponse(values=list(PERIOD_CHOICES)).model_dump())


@app.post("/overview")
def overview(filters: DashboardFiltersModel):
    return _page("overview", filters, compute_overview)


@app.post("/rankings")
def rankings(filters: DashboardFiltersModel):
    return _page("rankings", filters, compute_rankings)


@app.post("/trend")
def trend(filters: DashboardFiltersModel):
    return _page("trend", filters, compute_trend)


@app.post("/customers")
def customers(filters: DashboardFiltersModel):
    return _page("customers", filters, compute_customers)


@app.post("/dashboard")
def dashboard(filters: DashboardFiltersModel):
    return _page("dashboard", filters, compute_dashboard)


@app.post("/export/{page}")
def export_page(page: str, filters: DashboardFiltersModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_dashboard_data())
    except DataUnavailableError as exc:
        return _error(exc, 503)

    export_df = None
    filename = f"{page}.csv"
    if page == "orders":
        export_df = ctx.get("filtered_orders")
    elif page == "items":
        export_df = ctx.get("filtered_items")
    elif page == "customers":
        export_df = pd.DataFrame(rank_customers(ctx["filtered_orders"], limit=None))
    elif page == "recent-orders":
        export_df = pd.DataFrame(recent_orders(ctx["filtered_orders"]))
    else:
        return _error(LookupError(f"unknown export page: {page}"), 404)

    if export_df is None or not hasattr(export_df, "to_csv"):
        export_df = pd.DataFrame()
    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename={filename}"})
