import pandas as pd
import streamlit as st
from typing import Any, Dict, List, Optional

from orders_core.data import load_state
from orders_core.filters import ALL, PERIOD_CHOICES, SITES, DashboardFilters
from orders_core.formatting import (
    format_count,
    format_currency,
    format_last_update,
    truncate,
)
from orders_core.metrics_dashboard import compute_dashboard

PERIOD_LABELS = {ALL: "Tutto", 7: "Ultimi 7 giorni", 30: "Ultimi 30 giorni", 90: "Ultimi 90 giorni", 365: "Ultimo anno"}
SITE_LABELS = {ALL: "Tutti i siti", "IT": "Italia (IT)", "FR": "Francia (FR)", "ES": "Spagna (ES)"}


# ---------- UI / layout helpers ----------
def render_kpis(kpis: Dict[str, Any]):
    cols = st.columns(4)
    cols[0].metric("Fatturato", format_currency(kpis["revenue"]), help="Somma ordini completati e in elaborazione.")
    cols[1].metric("Ordini", format_count(kpis["orders"]))
    cols[2].metric("Scontrino medio", format_currency(kpis["avg_order_value"]))
    cols[3].metric("Clienti unici", format_count(kpis["unique_customers"]), help="Email distinte sugli ordini validi.")


def render_site_kpis(sites: Dict[str, Dict[str, Any]]):
    cols = st.columns(len(sites))
    for col, (site, vals) in zip(cols, sites.items()):
        col.metric(SITE_LABELS.get(site, site), format_currency(vals["revenue"]), delta=f"{vals['orders']} ordini", delta_color="off")


def render_chart(title: str, spec: Optional[Dict[str, Any]]):
    st.subheader(title)
    if not spec:
        st.info("Nessun dato per i filtri selezionati.")
        return
    st.vega_lite_chart(spec, use_container_width=True)


def render_table(title: str, rows: List[Dict[str, Any]], columns: Dict[str, str], currency_cols: List[str]):
    st.subheader(title)
    if not rows:
        st.info("Nessun dato per i filtri selezionati.")
        return
    df = pd.DataFrame(rows)[list(columns)]
    for c in currency_cols:
        df[c] = df[c].apply(format_currency)
    st.dataframe(df.rename(columns=columns), hide_index=True, use_container_width=True)


# ---------- UI setup ----------
st.set_page_config(page_title="Dashboard Ordini Genuine Leather", layout="wide")
st.title("Dashboard Ordini Genuine Leather")

with st.sidebar:
    st.markdown("### Filtri")
    period = st.radio("Periodo", PERIOD_CHOICES, index=0, format_func=lambda p: PERIOD_LABELS.get(p, str(p)))
    site = st.radio("Sito", [ALL, *SITES], index=0, format_func=lambda s: SITE_LABELS.get(s, s))

filters = DashboardFilters(period=period, site=site)
state = load_state(filters)
if not state["available"]:
    st.caption("Errore caricamento dati")
    st.error(f"Dati non disponibili. {state['error']}")
    st.stop()

st.caption(format_last_update(state["last_update"]))
payload = compute_dashboard(filters, state)
charts = payload["charts"]

render_kpis(payload["kpis"])
render_site_kpis(payload["sites"])

left, right = st.columns(2)
with left:
    render_chart("Brand più venduti (pezzi)", charts.get("brands"))
with right:
    render_chart("Metodi di pagamento", charts.get("payment"))

render_chart("Andamento giornaliero", charts.get("daily"))
render_chart("Prodotti per fatturato", charts.get("products"))

render_table(
    "Top clienti",
    payload["top_customers"],
    {"rank": "#", "name": "Cliente", "orders": "Ordini", "total": "Totale"},
    ["total"],
)

recent = [{**r, "number": str(r["number"]), "customer": truncate(str(r["customer"]), 30)} for r in payload["recent_orders"]]
render_table(
    "Ordini recenti",
    recent,
    {"number": "Ordine", "site": "Sito", "date_created": "Data", "customer": "Cliente", "status_label": "Stato", "total": "Totale"},
    ["total"],
)
