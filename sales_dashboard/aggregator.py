"""
Aggregator: rolls a flat collection of sales records up into the three
dashboard views plus the summary statistics.

  company  one row per company, biggest total first (stable on ties)
  time     one row per (year, month), oldest period first, then one
           undated row for records without a valid period
  source   one row per source value, display-labelled, first-seen order
  summary  record count, total sales, average price, sale date range
           (or EMPTY when there are no records)

Every call recomputes everything from the records it is given. The caller's
records are never modified; they are copied into a private DataFrame first.
"""
import logging

import pandas as pd

logger = logging.getLogger(__name__)

RECORD_COLUMNS = ["company", "price", "year", "month", "source", "sale_date"]
COMPANY_COLUMNS = ["company", "count", "total_sales"]
TIME_COLUMNS = ["year", "month", "period_start", "count", "total_sales", "avg_price"]
SOURCE_COLUMNS = ["source", "count", "total_sales"]

SOURCE_LABELS = {"source_a": "Source A", "source_b": "Source B"}

EMPTY_MESSAGE = "No data available for the selected filters."


class EmptyMarker:
    """Returned in place of the summary when the record set is empty."""

    def __init__(self, message: str = EMPTY_MESSAGE):
        self.message = message

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return f"EmptyMarker({self.message!r})"


EMPTY = EmptyMarker()


def is_empty(summary) -> bool:
    return isinstance(summary, EmptyMarker)


# ── RecordSet normalisation ───────────────────────────────────────────────────

def to_frame(records) -> pd.DataFrame:
    """
    Copy records (DataFrame or iterable of mappings) into a clean frame.

    price      non-numeric / missing -> 0.0 (record still counted)
    sale_date  parsed to naive UTC datetime, unparseable -> NaT
    year/month nullable ints; filled from sale_date when absent,
               NA when the period cannot be determined or month is not 1-12
    """
    if isinstance(records, pd.DataFrame):
        frame = records.reindex(columns=RECORD_COLUMNS).copy()
    else:
        frame = pd.DataFrame.from_records([dict(r) for r in records])
        frame = frame.reindex(columns=RECORD_COLUMNS)
    frame = frame.reset_index(drop=True)

    if frame.empty:
        return frame.astype({"price": float, "year": "Int64", "month": "Int64",
                             "sale_date": "datetime64[ns]"})

    price = pd.to_numeric(frame["price"], errors="coerce")
    n_bad = int(price.isna().sum())
    if n_bad:
        logger.warning("%d record(s) with a non-numeric price counted as 0", n_bad)
    frame["price"] = price.fillna(0.0).astype(float)

    # mixed offsets (or naive next to offset-aware) only parse as one UTC column
    sale_date = pd.to_datetime(frame["sale_date"], errors="coerce", format="mixed", utc=True)
    sale_date = sale_date.dt.tz_convert(None)
    frame["sale_date"] = sale_date

    year = pd.to_numeric(frame["year"], errors="coerce").astype(float).fillna(sale_date.dt.year)
    month = pd.to_numeric(frame["month"], errors="coerce").astype(float).fillna(sale_date.dt.month)
    valid = year.notna() & month.between(1, 12) & (year % 1 == 0) & (month % 1 == 0)
    frame["year"] = year.where(valid).astype("Int64")
    frame["month"] = month.where(valid).astype("Int64")
    return frame


def source_label(value):
    """Display label for a raw source value; unknown values pass through."""
    return SOURCE_LABELS.get(value, value)


# ── Views ─────────────────────────────────────────────────────────────────────

def company_view(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=COMPANY_COLUMNS)

    # sort=False keeps first-encountered order, the stable sort then keeps it for ties
    view = (
        frame.groupby("company", sort=False, dropna=False)
        .agg(count=("price", "size"), total_sales=("price", "sum"))
        .reset_index()
        .sort_values("total_sales", ascending=False, kind="stable")
        .reset_index(drop=True)
    )
    return view[COMPANY_COLUMNS]


def time_view(frame: pd.DataFrame) -> pd.DataFrame:
    """
    One row per (year, month), oldest first. Records without a valid period
    go into one trailing undated row (year, month, period_start all NA) so
    the counts still add up to the record count.
    """
    if frame.empty:
        return pd.DataFrame(columns=TIME_COLUMNS)

    has_period = frame["year"].notna() & frame["month"].notna()
    dated, undated = frame[has_period], frame[~has_period]
    parts = []

    if not dated.empty:
        dated = dated.astype({"year": "int64", "month": "int64"})
        view = (
            dated.groupby(["year", "month"], sort=False)
            .agg(count=("price", "size"), total_sales=("price", "sum"))
            .reset_index()
        )
        view["period_start"] = pd.to_datetime(view[["year", "month"]].assign(day=1))
        parts.append(view.sort_values("period_start", kind="stable"))

    if not undated.empty:
        logger.warning("%d record(s) without a valid year/month grouped as undated",
                       len(undated))
        parts.append(pd.DataFrame({
            "year": pd.array([pd.NA], dtype="Int64"),
            "month": pd.array([pd.NA], dtype="Int64"),
            "period_start": pd.Series([pd.NaT], dtype="datetime64[ns]"),
            "count": [len(undated)],
            "total_sales": [float(undated["price"].sum())],
        }))

    view = pd.concat(parts, ignore_index=True) if len(parts) > 1 else parts[0]
    view = view.reset_index(drop=True).astype({"year": "Int64", "month": "Int64"})
    view["avg_price"] = view["total_sales"] / view["count"]
    return view[TIME_COLUMNS]


def source_view(frame: pd.DataFrame) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=SOURCE_COLUMNS)

    view = (
        frame.groupby("source", sort=False, dropna=False)
        .agg(count=("price", "size"), total_sales=("price", "sum"))
        .reset_index()
    )
    unknown = [s for s in view["source"] if pd.notna(s) and s not in SOURCE_LABELS]
    if unknown:
        logger.info("Unrecognised source value(s) kept unlabelled: %s", unknown)
    view["source"] = view["source"].map(source_label)
    return view[SOURCE_COLUMNS]


def summary_stats(frame: pd.DataFrame):
    """Summary dict, or EMPTY when there is nothing to average over."""
    if frame.empty:
        return EMPTY

    total_records = len(frame)
    total_sales = float(frame["price"].sum())
    dates = frame["sale_date"].dropna()
    return {
        "total_records": total_records,
        "total_sales": total_sales,
        "avg_price": total_sales / total_records,
        "date_range_start": dates.min().date() if not dates.empty else None,
        "date_range_end": dates.max().date() if not dates.empty else None,
    }


# ── Entry point ───────────────────────────────────────────────────────────────

def aggregate(records) -> dict:
    """Build every view from scratch: {company, time, source, summary}."""
    frame = to_frame(records)
    result = {
        "company": company_view(frame),
        "time": time_view(frame),
        "source": source_view(frame),
        "summary": summary_stats(frame),
    }
    logger.debug(
        "Aggregated %d records into %d companies, %d periods, %d sources",
        len(frame), len(result["company"]), len(result["time"]), len(result["source"]),
    )
    return result
