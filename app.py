"""
Sales Dashboard: Streamlit host for the aggregation and chart core.
Loads the sales CSV (or a generated sample), shows the summary cards and the
three charts: sales over time, sales by company, sales by data source.

Hot-reload: edit the CSV at SALES_DATA_PATH and hit Ctrl+R. The file's mtime
fingerprint invalidates the loader cache, and the aggregate cache rebuilds
the views only when the records actually changed.
"""
import logging

import streamlit as st

from sales_dashboard.aggregator import is_empty
from sales_dashboard.config import get_settings
from sales_dashboard.data_layer import AggregateCache, generate_data, get_data_fingerprint, load_records
from sales_dashboard.summary_panel import summary_cards
from sales_dashboard.visualizations import PlotlySurface, build_dashboard

settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("sales_dashboard.app")

# ── Page Config ───────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Sales Dashboard",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="collapsed",
)

st.markdown("""
<style>
  .stApp { background-color: #f0f4fb; color: #1a2744; }
  .main .block-container { padding: 1.5rem 2rem 3rem; }
  div[data-testid="metric-container"] {
    background: #ffffff;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    border: 1px solid #d1ddf0;
    border-left: 3px solid #4f9eda;
  }
</style>
""", unsafe_allow_html=True)


# ── Data Bootstrap with Hot-Reload ────────────────────────────────────────────

@st.cache_data(show_spinner="Loading sales records…")
def _load_records(path: str, fingerprint: str):
    """Cache key includes fingerprint, so a modified file reloads."""
    records = load_records(path)
    if records.empty and settings.sample_size:
        logger.info("Using %d generated sample records", settings.sample_size)
        records = generate_data(settings.sample_size)
    return records


@st.cache_resource
def _aggregate_cache() -> AggregateCache:
    return AggregateCache()


records = _load_records(settings.data_path, get_data_fingerprint(settings.data_path))
aggregates = _aggregate_cache().get(records)


# ── Header ────────────────────────────────────────────────────────────────────
st.markdown("## 📊 Sales Dashboard")
st.caption(f"Source: {settings.data_path}")

summary = aggregates["summary"]
if is_empty(summary):
    st.info(summary.message)
    st.stop()


# ── Charts ────────────────────────────────────────────────────────────────────
surfaces = {kind: PlotlySurface() for kind in ("timeseries", "bar", "pie")}
build_dashboard(aggregates, surfaces=surfaces, configs={"bar": settings.bar_chart()})

_plot_config = {"displayModeBar": False}
st.plotly_chart(surfaces["timeseries"].figure, config=_plot_config, key="time_chart")

left, right = st.columns([5, 4])
with left:
    st.plotly_chart(surfaces["bar"].figure, config=_plot_config, key="bar_chart")
with right:
    st.plotly_chart(surfaces["pie"].figure, config=_plot_config, key="pie_chart")

st.markdown("---")


# ── Summary Cards ─────────────────────────────────────────────────────────────
cards = summary_cards(summary)
for col, card in zip(st.columns(len(cards)), cards):
    with col:
        st.metric(card["label"], card["value"])
