"""
Visualizations: turns the aggregate views into chart scenes and draws them
with Plotly.

  bar_chart(view)         company view -> one bar per company
  timeseries_chart(view)  time view    -> sales line + count line, with markers
  pie_chart(view)         source view  -> one slice per source

Renderers are pure: the same view always gives the same Scene. A `Chart`
owns one scene at a time together with its hover controller, and throws both
away on every render. `PlotlySurface` is the drawing target the Streamlit app
hands in.
"""
import logging
import math

import pandas as pd
import plotly.graph_objects as go

from .aggregator import EMPTY_MESSAGE
from .config import BAR_CHART, COLORS, PIE_CHART, SLICE_COLORS, TIME_CHART, ChartConfig
from .interaction import HIDDEN, InteractionController, TooltipState
from .scales import BandScale, arc_centroid, pie_layout, polar_point, time_scale, value_scale
from .scene import Circle, Label, LinePath, Rect, Scene, Shape, Wedge
from .summary_panel import format_tooltip

logger = logging.getLogger(__name__)

TOOLTIP_OFFSET = (10, -20)

# (series, value column, colour, legend text)
TIME_SERIES = [
    ("sales", "total_sales", COLORS["primary"], "Total Sales ($)"),
    ("count", "count", COLORS["accent"], "Number of Sales"),
]


def _money_tick(value: float) -> str:
    return f"${value:,.0f}"


def _title(config: ChartConfig, x: float) -> Label:
    return Label(id="title", x=x, y=20, text=config.title,
                 style={"font_size": 16, "fill": COLORS["text"]})


# ── Bar ───────────────────────────────────────────────────────────────────────

def bar_chart(view: pd.DataFrame, config: ChartConfig = BAR_CHART) -> Scene:
    """Total sales per company, bars in the view's (descending) order."""
    if view.empty:
        logger.debug("bar chart: empty company view")
        return Scene.empty_state("bar", config.width, config.height, EMPTY_MESSAGE)

    rows = view.to_dict("records")
    # bands keyed by row position: distinct companies may print the same
    x = BandScale(range(len(rows)), config.x_range, config.band_padding)
    y = value_scale([r["total_sales"] for r in rows], config.y_range)
    baseline = y(0)

    scene = Scene(chart="bar", width=config.width, height=config.height)
    for i, row in enumerate(rows):
        top = y(row["total_sales"])
        scene.shapes.append(Rect(
            id=f"bar-{i}",
            x=x(i),
            y=min(top, baseline),
            width=x.bandwidth,
            height=abs(baseline - top),
            style={"fill": COLORS["primary"]},
            datum=row,
        ))
        scene.labels.append(Label(
            id=f"x-tick-{i}", x=x.center(i), y=baseline + 10,
            text=str(row["company"]), anchor="end", rotate=-45,
        ))

    for i, tick in enumerate(y.ticks()):
        scene.labels.append(Label(id=f"y-tick-{i}", x=config.margin.left - 8, y=y(tick),
                                  text=_money_tick(tick), anchor="end"))
    scene.labels.append(_title(config, config.margin.left + config.inner_width / 2))
    scene.labels.append(Label(
        id="y-caption", x=config.margin.left - 60,
        y=config.margin.top + config.inner_height / 2,
        text="Total Sales ($)", rotate=-90,
    ))
    return scene


# ── Time series ───────────────────────────────────────────────────────────────

def timeseries_chart(view: pd.DataFrame, config: ChartConfig = TIME_CHART) -> Scene:
    """
    Monthly total sales (left axis) and number of sales (right axis).

    Each line and its markers come from the same list of points, so every
    hover marker sits exactly on a path vertex.
    """
    # the undated bucket has no place on a time axis
    view = view[view["period_start"].notna()]
    if view.empty:
        logger.debug("time series: no dated periods")
        return Scene.empty_state("timeseries", config.width, config.height, EMPTY_MESSAGE)

    rows = view.to_dict("records")
    x = time_scale([r["period_start"] for r in rows], config.x_range)
    scales = {
        "sales": value_scale([r["total_sales"] for r in rows], config.y_range),
        "count": value_scale([r["count"] for r in rows], config.y_range),
    }

    scene = Scene(chart="timeseries", width=config.width, height=config.height)
    for series, column, color, _ in TIME_SERIES:
        y = scales[series]
        points = [(x(r["period_start"]), y(r[column])) for r in rows]
        scene.shapes.append(LinePath(
            id=f"{series}-line", series=series, points=points,
            style={"stroke": color, "stroke_width": 3},
        ))
        for i, (row, (cx, cy)) in enumerate(zip(rows, points)):
            scene.shapes.append(Circle(
                id=f"{series}-{i}", series=series, cx=cx, cy=cy,
                style={"r": 5, "fill": color}, datum=row,
            ))

    baseline = config.y_range[0]
    right = config.width - config.margin.right
    for i, row in enumerate(rows):
        scene.labels.append(Label(
            id=f"x-tick-{i}", x=x(row["period_start"]), y=baseline + 10,
            text=pd.Timestamp(row["period_start"]).strftime("%b %Y"),
            anchor="end", rotate=-45,
        ))
    for i, tick in enumerate(scales["sales"].ticks()):
        scene.labels.append(Label(id=f"y-left-tick-{i}", x=config.margin.left - 8,
                                  y=scales["sales"](tick), text=_money_tick(tick), anchor="end"))
    for i, tick in enumerate(scales["count"].ticks()):
        scene.labels.append(Label(id=f"y-right-tick-{i}", x=right + 8,
                                  y=scales["count"](tick), text=f"{tick:,.0f}", anchor="start"))

    mid_y = config.margin.top + config.inner_height / 2
    scene.labels.append(_title(config, config.margin.left + config.inner_width / 2))
    scene.labels.append(Label(id="y-left-caption", x=config.margin.left - 60, y=mid_y,
                              text="Total Sales ($)", rotate=-90))
    scene.labels.append(Label(id="y-right-caption", x=right + 40, y=mid_y,
                              text="Number of Sales", rotate=-90))
    _timeseries_legend(scene, right - 150, baseline - 80)
    return scene


def _timeseries_legend(scene: Scene, left: float, top: float) -> None:
    scene.shapes.append(Rect(id="legend-box", x=left, y=top, width=150, height=80,
                             style={"fill": "#ffffff", "stroke": COLORS["legend"]}))
    for i, (series, _, color, text) in enumerate(TIME_SERIES):
        cy = top + 20 + 30 * i
        scene.shapes.append(Circle(id=f"legend-{series}", cx=left + 20, cy=cy,
                                   style={"r": 6, "fill": color}))
        scene.labels.append(Label(id=f"legend-{series}-text", x=left + 40, y=cy,
                                  text=text, anchor="start"))


# ── Pie ───────────────────────────────────────────────────────────────────────

def pie_chart(view: pd.DataFrame, config: ChartConfig = PIE_CHART) -> Scene:
    """Share of total sales per source, slices in the view's order."""
    if view.empty:
        logger.debug("pie chart: empty source view")
        return Scene.empty_state("pie", config.width, config.height, EMPTY_MESSAGE)

    rows = view.to_dict("records")
    radius = min(config.width, config.height) / 2
    cx, cy = config.width / 2, config.height / 2

    scene = Scene(chart="pie", width=config.width, height=config.height)
    for row, piece in zip(rows, pie_layout(r["total_sales"] for r in rows)):
        i = piece.index
        scene.shapes.append(Wedge(
            id=f"slice-{i}", cx=cx, cy=cy,
            start_angle=piece.start_angle, end_angle=piece.end_angle,
            inner_radius=0.0, outer_radius=radius,
            percentage=piece.percentage,
            style={"fill": SLICE_COLORS[i % len(SLICE_COLORS)], "stroke": COLORS["stroke"],
                   "stroke_width": 2, "opacity": 0.8},
            datum=row,
        ))
        lx, ly = arc_centroid(piece.start_angle, piece.end_angle, radius * 0.5, radius * 0.8)
        scene.labels.append(Label(
            id=f"slice-label-{i}", x=cx + lx, y=cy + ly, text=f"{piece.percentage:.1f}%",
            style={"fill": "#ffffff", "font_size": 15, "font_weight": "bold"},
        ))

    scene.labels.append(_title(config, cx))
    for i, row in enumerate(rows):
        top = config.height - 60 + 30 * i
        scene.shapes.append(Rect(id=f"legend-{i}", x=50, y=top, width=20, height=20,
                                 style={"fill": SLICE_COLORS[i % len(SLICE_COLORS)]}))
        scene.labels.append(Label(id=f"legend-{i}-text", x=80, y=top + 10,
                                  text=str(row["source"]), anchor="start"))
    return scene


RENDERERS = {
    "bar": bar_chart,
    "timeseries": timeseries_chart,
    "pie": pie_chart,
}

DEFAULT_CONFIGS = {
    "bar": BAR_CHART,
    "timeseries": TIME_CHART,
    "pie": PIE_CHART,
}

# aggregate bundle key feeding each chart
VIEW_KEYS = {
    "bar": "company",
    "timeseries": "time",
    "pie": "source",
}


# ── Chart instance ────────────────────────────────────────────────────────────

class Chart:
    """
    One chart on the page: renderer, current scene, hover controller and
    tooltip state. Nothing is shared with other Chart instances.
    """

    def __init__(self, kind: str, config: ChartConfig | None = None, surface=None):
        if kind not in RENDERERS:
            raise ValueError(f"Unknown chart type: {kind}")
        self.kind = kind
        self.config = config or DEFAULT_CONFIGS[kind]
        self.surface = surface
        self.scene: Scene | None = None
        self.controller = InteractionController.for_chart(kind)

    @property
    def tooltip(self) -> TooltipState:
        return self.controller.tooltip

    def render(self, view: pd.DataFrame) -> Scene:
        """Discard the previous scene and hover state, then draw afresh."""
        self.controller.detach_all()
        self.controller = InteractionController.for_chart(self.kind)
        self.scene = RENDERERS[self.kind](view, self.config)
        self.controller.attach(self.scene.interactive())
        if self.surface is not None:
            self.surface.draw(self.scene, self.tooltip_text)
        return self.scene

    def tooltip_text(self, shape: Shape) -> str:
        return format_tooltip(self.controller.tooltip_payload(shape))

    def pointer_enter(self, shape, x: float, y: float) -> TooltipState:
        state = self.controller.pointer_enter(shape, x, y)
        self._publish(state)
        return state

    def pointer_leave(self, shape) -> TooltipState:
        state = self.controller.pointer_leave(shape)
        self._publish(state)
        return state

    def _publish(self, state: TooltipState) -> None:
        if self.surface is not None:
            self.surface.show_tooltip(state, format_tooltip(state.payload))


def build_dashboard(aggregates: dict, surfaces: dict | None = None,
                    configs: dict | None = None) -> dict[str, Chart]:
    """Render all three charts from one aggregate bundle."""
    surfaces = surfaces or {}
    configs = configs or {}
    charts = {}
    for kind, key in VIEW_KEYS.items():
        chart = Chart(kind, config=configs.get(kind), surface=surfaces.get(kind))
        chart.render(aggregates[key])
        charts[kind] = chart
    return charts


# ── Plotly surface ────────────────────────────────────────────────────────────

_XANCHOR = {"start": "left", "middle": "center", "end": "right"}


def _wedge_outline(shape: Wedge) -> tuple[list[float], list[float]]:
    sweep = shape.end_angle - shape.start_angle
    steps = max(2, int(math.degrees(sweep) / 3))
    xs, ys = [shape.cx], [shape.cy]
    for k in range(steps + 1):
        px, py = polar_point(shape.start_angle + sweep * k / steps, shape.outer_radius)
        xs.append(shape.cx + px)
        ys.append(shape.cy + py)
    xs.append(shape.cx)
    ys.append(shape.cy)
    return xs, ys


def _hover_marker(x: float, y: float, size: float, text: str) -> go.Scatter:
    # filled outlines carry no hover text; an invisible marker at the centre does
    return go.Scatter(
        x=[x], y=[y], mode="markers",
        marker=dict(size=size, opacity=0),
        hovertext=[text], hoverinfo="text",
        showlegend=False,
    )


def _traces(shape: Shape, tooltip_text) -> list:
    style = shape.style
    text = tooltip_text(shape) if (tooltip_text and shape.datum is not None) else ""

    if isinstance(shape, Rect):
        xs = [shape.x, shape.x + shape.width, shape.x + shape.width, shape.x, shape.x]
        ys = [shape.y, shape.y, shape.y + shape.height, shape.y + shape.height, shape.y]
        traces = [go.Scatter(
            x=xs, y=ys, mode="lines", fill="toself",
            fillcolor=style.get("fill", COLORS["primary"]),
            line=dict(color=style.get("stroke", style.get("fill")), width=1),
            hoverinfo="skip", showlegend=False,
        )]
        if text:
            traces.append(_hover_marker(shape.x + shape.width / 2, shape.y + shape.height / 2,
                                        max(8.0, min(shape.width, shape.height)), text))
        return traces

    if isinstance(shape, Circle):
        return [go.Scatter(
            x=[shape.cx], y=[shape.cy], mode="markers",
            marker=dict(size=2 * style.get("r", 5), color=style.get("fill")),
            hovertext=[text] if text else None,
            hoverinfo="text" if text else "skip",
            showlegend=False,
        )]

    if isinstance(shape, LinePath):
        return [go.Scatter(
            x=[p[0] for p in shape.points], y=[p[1] for p in shape.points], mode="lines",
            line=dict(color=style.get("stroke"), width=style.get("stroke_width", 2)),
            hoverinfo="skip", showlegend=False,
        )]

    if isinstance(shape, Wedge):
        xs, ys = _wedge_outline(shape)
        traces = [go.Scatter(
            x=xs, y=ys, mode="lines", fill="toself",
            fillcolor=style.get("fill"), opacity=style.get("opacity", 1.0),
            line=dict(color=style.get("stroke", "#ffffff"), width=style.get("stroke_width", 1)),
            hoverinfo="skip", showlegend=False,
        )]
        if text and shape.end_angle > shape.start_angle:
            mx, my = arc_centroid(shape.start_angle, shape.end_angle,
                                  shape.inner_radius, shape.outer_radius)
            traces.append(_hover_marker(shape.cx + mx, shape.cy + my,
                                        shape.outer_radius / 2, text))
        return traces

    return []


def to_figure(scene: Scene, tooltip_text=None) -> go.Figure:
    """Plotly figure in the scene's pixel space (y axis reversed)."""
    fig = go.Figure()
    if scene.empty:
        fig.add_annotation(text=scene.message, x=0.5, y=0.5, xref="paper", yref="paper",
                           showarrow=False, font=dict(size=14, color=COLORS["text"]))

    for shape in scene.shapes:
        for trace in _traces(shape, tooltip_text):
            fig.add_trace(trace)

    for label in scene.labels:
        fig.add_annotation(
            x=label.x, y=label.y, text=label.text, showarrow=False,
            textangle=label.rotate, xanchor=_XANCHOR.get(label.anchor, "center"),
            yanchor="middle",
            font=dict(size=label.style.get("font_size", 11),
                      color=label.style.get("fill", COLORS["text"])),
        )

    fig.update_layout(
        width=scene.width,
        height=scene.height,
        margin=dict(t=0, b=0, l=0, r=0),
        paper_bgcolor="#ffffff",
        plot_bgcolor="#ffffff",
        showlegend=False,
        hovermode="closest",
        xaxis=dict(range=[0, scene.width], visible=False, fixedrange=True),
        yaxis=dict(range=[scene.height, 0], visible=False, fixedrange=True),
    )
    return fig


class PlotlySurface:
    """Drawing target backed by a Plotly figure; holds its chart's tooltip."""

    def __init__(self):
        self.figure: go.Figure | None = None
        self.tooltip: TooltipState = HIDDEN

    def draw(self, scene: Scene, tooltip_text=None) -> None:
        self.figure = to_figure(scene, tooltip_text)
        self.tooltip = HIDDEN

    def show_tooltip(self, state: TooltipState, text: str = "") -> None:
        self.tooltip = state
        if self.figure is None:
            return
        self.figure.layout.annotations = [
            a for a in self.figure.layout.annotations if a.name != "tooltip"
        ]
        if state.visible:
            self.figure.add_annotation(
                name="tooltip", x=state.x + TOOLTIP_OFFSET[0], y=state.y + TOOLTIP_OFFSET[1],
                text=text, showarrow=False, align="left", xanchor="left",
                bgcolor="#ffffff", bordercolor=COLORS["legend"], borderwidth=1,
            )
