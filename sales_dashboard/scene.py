"""
Scene graph: positioned shapes and labels produced by the chart renderers.

Coordinates are pixels with the origin at the top-left of the chart and y
pointing down. Anything a hover can change (fill, radius, opacity) lives in
the shape's `style` dict; geometry never changes after rendering.
"""
from dataclasses import dataclass, field


@dataclass(kw_only=True)
class Shape:
    id: str
    style: dict = field(default_factory=dict)
    datum: dict | None = None     # aggregate row the shape was drawn from
    series: str | None = None

    kind = "shape"


@dataclass(kw_only=True)
class Rect(Shape):
    x: float
    y: float
    width: float
    height: float

    kind = "rect"


@dataclass(kw_only=True)
class Circle(Shape):
    cx: float
    cy: float

    kind = "circle"


@dataclass(kw_only=True)
class LinePath(Shape):
    points: list[tuple[float, float]] = field(default_factory=list)

    kind = "path"


@dataclass(kw_only=True)
class Wedge(Shape):
    cx: float
    cy: float
    start_angle: float
    end_angle: float
    inner_radius: float
    outer_radius: float
    percentage: float = 0.0

    kind = "wedge"


@dataclass(kw_only=True)
class Label(Shape):
    x: float
    y: float
    text: str
    anchor: str = "middle"
    rotate: float = 0.0

    kind = "text"


@dataclass
class Scene:
    chart: str
    width: float
    height: float
    shapes: list[Shape] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    empty: bool = False
    message: str | None = None

    @classmethod
    def empty_state(cls, chart: str, width: float, height: float, message: str) -> "Scene":
        return cls(chart=chart, width=width, height=height, empty=True, message=message)

    def interactive(self) -> list[Shape]:
        """Shapes bound to an aggregate row, i.e. the hover targets."""
        return [s for s in self.shapes if s.datum is not None]

    def find(self, shape_id: str) -> Shape | None:
        for shape in self.shapes:
            if shape.id == shape_id:
                return shape
        return None

    def of_kind(self, kind: str, series: str | None = None) -> list[Shape]:
        return [
            s for s in self.shapes
            if s.kind == kind and (series is None or s.series == series)
        ]
