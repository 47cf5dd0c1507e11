"""
Summary Panel: the four stat cards under the charts, plus the display
formatting shared with the chart tooltips.

Aggregates and tooltip payloads carry raw numbers and dates; everything in
this module turns them into strings for display and nothing else.
"""
from datetime import date

import pandas as pd

from .aggregator import is_empty


# ── Formatting ────────────────────────────────────────────────────────────────

def format_currency(value) -> str:
    return f"${float(value):,.2f}"


def format_count(value) -> str:
    return f"{int(value):,}"


def format_period(value) -> str:
    """'January 2023' for a period start."""
    return pd.Timestamp(value).strftime("%B %Y")


def format_date(value: date | None) -> str:
    return "N/A" if value is None else pd.Timestamp(value).strftime("%Y-%m-%d")


def format_date_range(start: date | None, end: date | None) -> str:
    if start is None or end is None:
        return "N/A"
    return f"{format_date(start)} to {format_date(end)}"


def format_tooltip(payload: dict | None) -> str:
    """HTML tooltip body for a bar, time-series or pie payload."""
    if not payload:
        return ""
    if "period" in payload:
        heading = format_period(payload["period"])
    elif "company" in payload:
        heading = str(payload["company"])
    else:
        heading = str(payload.get("source", ""))

    lines = [
        f"<b>{heading}</b>",
        f"Total Sales: {format_currency(payload['total_sales'])}",
        f"Number of Sales: {format_count(payload['count'])}",
    ]
    if "avg_price" in payload:
        lines.append(f"Average Price: {format_currency(payload['avg_price'])}")
    if "percentage" in payload:
        lines.append(f"Percentage: {payload['percentage']:.1f}%")
    return "<br>".join(lines)


# ── Cards ─────────────────────────────────────────────────────────────────────

def summary_cards(summary) -> list[dict]:
    """Label/value pairs for the stat cards, or one empty-state card."""
    if is_empty(summary):
        return [{"label": "No data", "value": summary.message}]
    return [
        {"label": "Total Records", "value": format_count(summary["total_records"])},
        {"label": "Total Sales", "value": format_currency(summary["total_sales"])},
        {"label": "Average Price", "value": format_currency(summary["avg_price"])},
        {"label": "Date Range",
         "value": format_date_range(summary["date_range_start"], summary["date_range_end"])},
    ]
