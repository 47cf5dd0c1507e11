"""
Data Layer: loads the sales CSV, generates a sample record set, and memoises
aggregation.

File expected at SALES_DATA_PATH (default <project_root>/data/sales.csv) with
columns  company, price, year, month, source, sale_date.

Hot-reload: call get_data_fingerprint() on every Streamlit run and pass it as
an argument to the cached loader. A changed mtime changes the fingerprint and
invalidates the cache. AggregateCache applies the same idea to the record set
itself so views are rebuilt only when the records change.
"""
import hashlib
import logging
import os

import numpy as np
import pandas as pd

from .aggregator import RECORD_COLUMNS, aggregate, to_frame

logger = logging.getLogger(__name__)


# ── Hot-reload helpers ────────────────────────────────────────────────────────

def get_data_fingerprint(path: str) -> str:
    """Hex digest that changes whenever the CSV at path is modified."""
    h = hashlib.md5()
    if os.path.exists(path):
        h.update(f"{path}:{os.path.getmtime(path)}".encode())
    else:
        h.update(f"{path}:missing".encode())
    return h.hexdigest()


def records_fingerprint(records) -> str:
    """Content digest of a record set; equal records give equal digests."""
    frame = records if isinstance(records, pd.DataFrame) else to_frame(records)
    h = hashlib.md5()
    h.update(",".join(frame.columns).encode())
    # repr keeps 1 and "1" apart, str would not
    cells = frame.astype(object).apply(lambda col: col.map(repr))
    h.update(pd.util.hash_pandas_object(cells, index=False).values.tobytes())
    return h.hexdigest()


# ── Loaders ───────────────────────────────────────────────────────────────────

def load_records(path: str) -> pd.DataFrame:
    """Read the sales CSV; a missing file gives an empty record set."""
    if not os.path.exists(path):
        logger.info("No sales file at %s", path)
        return pd.DataFrame(columns=RECORD_COLUMNS)
    records = pd.read_csv(path)
    missing = [c for c in RECORD_COLUMNS if c not in records.columns and c != "sale_date"]
    if missing:
        logger.warning("Sales file %s is missing column(s) %s", path, missing)
    logger.debug("Loaded %d records from %s", len(records), path)
    return records


_COMPANIES = ["Acme Corp", "Globex", "Initech", "Umbrella", "Stark Industries",
              "Wayne Enterprises", "Hooli", "Soylent"]


def generate_data(n: int = 500, seed: int = 42) -> pd.DataFrame:
    """
    Build a deterministic sample record set spanning 2022-2024.

    Company popularity and price levels are skewed so the bar chart has a
    clear ordering; roughly 60% of sales come from source_a.
    """
    rng = np.random.default_rng(seed)
    if n <= 0:
        return pd.DataFrame(columns=RECORD_COLUMNS)

    weights = np.linspace(2.0, 0.5, len(_COMPANIES))
    company = rng.choice(_COMPANIES, size=n, p=weights / weights.sum())
    price = np.round(rng.lognormal(mean=6.0, sigma=0.6, size=n), 2)
    year = rng.integers(2022, 2025, size=n)
    month = rng.integers(1, 13, size=n)
    day = rng.integers(1, 29, size=n)
    source = rng.choice(["source_a", "source_b"], size=n, p=[0.6, 0.4])

    sale_date = pd.to_datetime(pd.DataFrame({"year": year, "month": month, "day": day}))
    return pd.DataFrame({
        "company": company,
        "price": price,
        "year": year,
        "month": month,
        "source": source,
        "sale_date": sale_date.dt.date,
    })


# ── Memoised aggregation ──────────────────────────────────────────────────────

class AggregateCache:
    """
    Holds the views of the most recent record set.

    Every call fingerprints the records' content, so a list mutated in place
    and handed in again is picked up. Only the rollups are skipped when the
    fingerprint matches; otherwise every view is rebuilt from scratch and the
    stale ones are dropped.
    """

    def __init__(self, aggregate_fn=aggregate):
        self._aggregate = aggregate_fn
        self._fingerprint: str | None = None
        self._result: dict | None = None
        self.recomputes = 0

    def get(self, records) -> dict:
        # one normalised copy serves both the fingerprint and the rollups,
        # so generators are consumed only once
        frame = to_frame(records)
        fingerprint = records_fingerprint(frame)
        if self._result is None or fingerprint != self._fingerprint:
            self._result = self._aggregate(frame)
            self._fingerprint = fingerprint
            self.recomputes += 1
            logger.debug("Aggregates recomputed (fingerprint %s)", fingerprint[:8])
        return self._result

    def clear(self):
        self._fingerprint = None
        self._result = None
