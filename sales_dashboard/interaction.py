"""
Interaction: the hover / tooltip state machine shared by every chart type.

Each shape is either IDLE or HOVERED. Pointer-enter emphasises the shape and
shows one tooltip built from the shape's aggregate row; pointer-leave puts
the shape's style back exactly as it was and hides the tooltip. What differs
between chart types is only which fields the tooltip carries and what the
emphasis looks like, so both are passed in.
"""
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from .config import COLORS
from .scene import Shape

logger = logging.getLogger(__name__)


class HoverState(str, Enum):
    IDLE = "idle"
    HOVERED = "hovered"


@dataclass(frozen=True)
class TooltipState:
    visible: bool = False
    payload: dict | None = None
    x: float | None = None
    y: float | None = None
    shape_id: str | None = None


HIDDEN = TooltipState()


# ── Tooltip payloads ──────────────────────────────────────────────────────────

def bar_tooltip(shape: Shape) -> dict:
    row = shape.datum
    return {
        "company": row["company"],
        "total_sales": row["total_sales"],
        "count": row["count"],
    }


def time_tooltip(shape: Shape) -> dict:
    row = shape.datum
    return {
        "period": row["period_start"],
        "total_sales": row["total_sales"],
        "count": row["count"],
        "avg_price": row["avg_price"],
    }


def pie_tooltip(shape: Shape) -> dict:
    row = shape.datum
    return {
        "source": row["source"],
        "total_sales": row["total_sales"],
        "count": row["count"],
        "percentage": shape.percentage,
    }


@dataclass(frozen=True)
class Behaviour:
    tooltip_fields: Callable[[Shape], dict]
    emphasis: dict


BEHAVIOURS = {
    "bar": Behaviour(bar_tooltip, {"fill": COLORS["emphasis"]}),
    "timeseries": Behaviour(time_tooltip, {"r": 8}),
    "pie": Behaviour(pie_tooltip, {"opacity": 1.0}),
}


# ── State machine ─────────────────────────────────────────────────────────────

class InteractionController:
    """Hover behaviour for the shapes of one chart instance."""

    def __init__(self, tooltip_fields: Callable[[Shape], dict], emphasis: dict):
        self._tooltip_fields = tooltip_fields
        self._emphasis = dict(emphasis)
        self._shapes: dict[str, Shape] = {}
        self._saved_style: dict | None = None
        self._hovered: str | None = None
        self.tooltip: TooltipState = HIDDEN

    @classmethod
    def for_chart(cls, chart: str) -> "InteractionController":
        behaviour = BEHAVIOURS[chart]
        return cls(behaviour.tooltip_fields, behaviour.emphasis)

    def attach(self, shapes) -> None:
        """Register hover targets; shapes without a bound row are skipped."""
        for shape in shapes:
            if shape.datum is not None:
                self._shapes[shape.id] = shape

    def detach_all(self) -> None:
        if self._hovered is not None:
            self._revert()
        self._shapes.clear()
        self.tooltip = HIDDEN

    @property
    def hovered(self) -> str | None:
        return self._hovered

    def state_of(self, shape) -> HoverState:
        return HoverState.HOVERED if _shape_id(shape) == self._hovered else HoverState.IDLE

    def tooltip_payload(self, shape) -> dict | None:
        target = self._shapes.get(_shape_id(shape))
        return None if target is None else self._tooltip_fields(target)

    def pointer_enter(self, shape, x: float, y: float) -> TooltipState:
        shape_id = _shape_id(shape)
        target = self._shapes.get(shape_id)
        if target is None:
            logger.debug("pointer_enter on unattached shape %s ignored", shape_id)
            return self.tooltip

        if shape_id == self._hovered:
            self.tooltip = replace(self.tooltip, x=x, y=y)
            return self.tooltip

        # one tooltip per chart: a missed leave on the previous shape is repaired here
        if self._hovered is not None:
            self._revert()

        self._saved_style = dict(target.style)
        target.style.update(self._emphasis)
        self._hovered = shape_id
        self.tooltip = TooltipState(
            visible=True,
            payload=self._tooltip_fields(target),
            x=x,
            y=y,
            shape_id=shape_id,
        )
        return self.tooltip

    def pointer_leave(self, shape) -> TooltipState:
        shape_id = _shape_id(shape)
        if shape_id != self._hovered:
            logger.debug("pointer_leave on idle shape %s ignored", shape_id)
            return self.tooltip
        self._revert()
        self.tooltip = HIDDEN
        return self.tooltip

    def _revert(self) -> None:
        shape = self._shapes[self._hovered]
        shape.style.clear()
        shape.style.update(self._saved_style or {})
        self._saved_style = None
        self._hovered = None


def _shape_id(shape) -> str:
    return shape if isinstance(shape, str) else shape.id
