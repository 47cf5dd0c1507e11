"""
Scales: map aggregate values onto pixel coordinates, or onto angles for the
pie.

All scales are plain callables built once per render. Degenerate domains
never divide by zero: a single-point domain maps to the middle of the range
and a zero total gives zero-width slices.
"""
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

TAU = 2 * math.pi

# Largest bar / point stays 10% below the top edge
HEADROOM = 1.1


# ── Categorical ───────────────────────────────────────────────────────────────

class BandScale:
    """
    Equal-width bands in domain order, laid out like d3.scaleBand().padding(p):
    the same padding fraction between bands and at both outer edges, bands
    centred in the range.
    """

    def __init__(self, domain, range_: tuple[float, float], padding: float = 0.2):
        self.domain = list(dict.fromkeys(domain))
        self.range = (float(range_[0]), float(range_[1]))
        self.padding = padding
        self._index = {category: i for i, category in enumerate(self.domain)}

        n = len(self.domain)
        r0, r1 = self.range
        self.step = (r1 - r0) / max(1, n - padding + 2 * padding)
        self.bandwidth = self.step * (1 - padding)
        self._start = r0 + (r1 - r0 - self.step * (n - padding)) / 2

    def __call__(self, category) -> float | None:
        i = self._index.get(category)
        if i is None:
            return None
        return self._start + self.step * i

    def center(self, category) -> float | None:
        x = self(category)
        return None if x is None else x + self.bandwidth / 2


# ── Linear ────────────────────────────────────────────────────────────────────

class LinearScale:
    def __init__(self, domain: tuple[float, float], range_: tuple[float, float]):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, value) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return (r0 + r1) / 2
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 5) -> list[float]:
        """Evenly spaced domain values, both ends included."""
        d0, d1 = self.domain
        if d1 == d0 or count < 2:
            return [d0]
        return [float(v) for v in np.linspace(d0, d1, count)]


def value_scale(values, range_: tuple[float, float]) -> LinearScale:
    """Domain [0, max * 1.1]; an all-zero series keeps 0 on the baseline."""
    values = [float(v) for v in values]
    top = max(values) * HEADROOM if values else 0.0
    if top == 0:
        top = 1.0
    return LinearScale((0.0, top), range_)


# ── Temporal ──────────────────────────────────────────────────────────────────

class TimeScale:
    def __init__(self, domain, range_: tuple[float, float]):
        self.domain = (pd.Timestamp(domain[0]), pd.Timestamp(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, value) -> float:
        t0, t1 = self.domain
        r0, r1 = self.range
        span = (t1 - t0).total_seconds()
        if span == 0:
            return (r0 + r1) / 2
        offset = (pd.Timestamp(value) - t0).total_seconds()
        return r0 + offset / span * (r1 - r0)


def time_scale(periods, range_: tuple[float, float]) -> TimeScale:
    periods = [pd.Timestamp(p) for p in periods]
    if not periods:
        raise ValueError("time_scale needs at least one period")
    return TimeScale((min(periods), max(periods)), range_)


# ── Angular ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Slice:
    index: int
    value: float
    fraction: float
    start_angle: float
    end_angle: float

    @property
    def percentage(self) -> float:
        return self.fraction * 100

    @property
    def mid_angle(self) -> float:
        return (self.start_angle + self.end_angle) / 2


def pie_layout(values) -> list[Slice]:
    """
    One slice per value, in input order, sweeping TAU * value / total.

    Zero, negative and missing values get zero-width slices. The fraction is
    what both the slice sweep and its percentage label are derived from.
    """
    raw = np.nan_to_num(np.asarray(list(values), dtype=float), nan=0.0)
    weights = np.clip(raw, 0.0, None)
    total = weights.sum()
    fractions = weights / total if total > 0 else np.zeros_like(weights)
    ends = np.cumsum(fractions) * TAU
    starts = np.concatenate([[0.0], ends[:-1]])
    return [
        Slice(index=i, value=float(raw[i]), fraction=float(fractions[i]),
              start_angle=float(starts[i]), end_angle=float(ends[i]))
        for i in range(len(weights))
    ]


def polar_point(angle: float, radius: float) -> tuple[float, float]:
    """Offset from the centre; angle 0 at twelve o'clock, clockwise, y down."""
    return (math.sin(angle) * radius, -math.cos(angle) * radius)


def arc_centroid(start: float, end: float, inner: float, outer: float) -> tuple[float, float]:
    """Angular midpoint at the radial middle of the ring [inner, outer]."""
    return polar_point((start + end) / 2, (inner + outer) / 2)
