"""
Configuration: environment-driven settings and per-chart geometry.

Configure in .env (all optional):
  SALES_DATA_PATH     = data/sales.csv   CSV the dashboard loads on start
  SALES_LOG_LEVEL     = INFO
  SALES_BAND_PADDING  = 0.2              inter-band padding of the company bar chart
  SALES_SAMPLE_SIZE   = 500              records generated when no CSV is present
"""
import logging
import os
from dataclasses import dataclass, field, replace
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


# ── Palette ───────────────────────────────────────────────────────────────────

COLORS = {
    "primary":  "#4f9eda",   # bars, sales series, first slice
    "emphasis": "#2a7ab8",   # hovered bar
    "accent":   "#f79646",   # count series, second slice
    "text":     "#1a2744",
    "grid":     "#d1ddf0",
    "stroke":   "#ffffff",
    "legend":   "#cccccc",
}

SLICE_COLORS = [COLORS["primary"], COLORS["accent"]]


# ── Chart geometry ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Margin:
    top: float
    right: float
    bottom: float
    left: float


@dataclass(frozen=True)
class ChartConfig:
    width: float
    height: float
    margin: Margin = field(default_factory=lambda: Margin(0, 0, 0, 0))
    band_padding: float = 0.2
    title: str = ""

    @property
    def inner_width(self) -> float:
        return self.width - self.margin.left - self.margin.right

    @property
    def inner_height(self) -> float:
        return self.height - self.margin.top - self.margin.bottom

    @property
    def x_range(self) -> tuple[float, float]:
        return (self.margin.left, self.width - self.margin.right)

    @property
    def y_range(self) -> tuple[float, float]:
        """Bottom edge first so that domain 0 lands on the baseline."""
        return (self.height - self.margin.bottom, self.margin.top)


BAR_CHART = ChartConfig(
    width=500, height=400,
    margin=Margin(top=30, right=30, bottom=70, left=80),
    title="Total Sales by Company",
)
TIME_CHART = ChartConfig(
    width=800, height=400,
    margin=Margin(top=30, right=60, bottom=70, left=80),
    title="Sales Over Time",
)
PIE_CHART = ChartConfig(
    width=400, height=400,
    title="Sales by Data Source",
)


# ── Environment settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    data_path: str
    log_level: str
    band_padding: float
    sample_size: int

    def bar_chart(self) -> ChartConfig:
        return replace(BAR_CHART, band_padding=self.band_padding)


def _get_float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def _get_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load .env once and return the cached settings."""
    load_dotenv()
    data_path = os.environ.get("SALES_DATA_PATH", os.path.join("data", "sales.csv"))
    if not os.path.isabs(data_path):
        data_path = os.path.join(_PROJECT_ROOT, data_path)

    padding = _get_float_env("SALES_BAND_PADDING", 0.2)
    if not 0 <= padding < 1:
        logger.warning("SALES_BAND_PADDING=%s outside [0, 1), using 0.2", padding)
        padding = 0.2

    return Settings(
        data_path=data_path,
        log_level=os.environ.get("SALES_LOG_LEVEL", "INFO").upper(),
        band_padding=padding,
        sample_size=max(0, _get_int_env("SALES_SAMPLE_SIZE", 500)),
    )
