"""
Drag/resize interaction tracking.

An explicit finite-state record advanced by a pure reducer:

    IDLE --PointerDown(drag)--> DRAGGING --PointerUp/Leave--> IDLE
    IDLE --PointerDown(resize)-> RESIZING --PointerUp/Leave--> IDLE

Only one field is active at a time and drag/resize exclude each other.
Pointer deltas are measured in page pixels from the pointer-down origin, so a
move is applied to the geometry captured at pointer-down (not cumulatively).
A PointerDown while an interaction is active is ignored.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from fields.models.geometry import FieldGeometry


class InteractionMode(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    RESIZING = "resizing"


class PointerAction(str, Enum):
    DRAG = "drag"
    RESIZE = "resize"


Point = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class InteractionState:
    mode: InteractionMode = InteractionMode.IDLE
    active_field_id: Optional[str] = None
    origin_pointer: Optional[Point] = None
    origin_geometry: Optional[FieldGeometry] = None

    @property
    def is_active(self) -> bool:
        return self.mode is not InteractionMode.IDLE


IDLE = InteractionState()


@dataclass(frozen=True, slots=True)
class PointerDown:
    field_id: str
    action: PointerAction
    pointer: Point
    geometry: FieldGeometry


@dataclass(frozen=True, slots=True)
class PointerMove:
    pointer: Point


@dataclass(frozen=True, slots=True)
class PointerUp:
    pass


@dataclass(frozen=True, slots=True)
class PointerLeave:
    pass


PointerEvent = Union[PointerDown, PointerMove, PointerUp, PointerLeave]


@dataclass(frozen=True, slots=True)
class GeometryUpdate:
    field_id: str
    geometry: FieldGeometry


def reduce(state: InteractionState, event: PointerEvent) -> Tuple[InteractionState, Optional[GeometryUpdate]]:
    """Advance ``state`` by one pointer event; returns the new state and an optional geometry change."""
    if isinstance(event, PointerDown):
        if state.is_active:
            return state, None
        mode = InteractionMode.DRAGGING if event.action is PointerAction.DRAG else InteractionMode.RESIZING
        return InteractionState(
            mode=mode,
            active_field_id=event.field_id,
            origin_pointer=event.pointer,
            origin_geometry=event.geometry,
        ), None

    if isinstance(event, PointerMove):
        if not state.is_active or state.origin_pointer is None or state.origin_geometry is None:
            return state, None
        dx = event.pointer[0] - state.origin_pointer[0]
        dy = event.pointer[1] - state.origin_pointer[1]
        if state.mode is InteractionMode.DRAGGING:
            geometry = state.origin_geometry.moved(dx, dy)
        else:
            geometry = state.origin_geometry.resized(dx, dy)
        return state, GeometryUpdate(field_id=state.active_field_id or "", geometry=geometry)

    if isinstance(event, (PointerUp, PointerLeave)):
        return IDLE, None

    return state, None


def to_page_point(display_x: float, display_y: float, scale: float) -> Point:
    """Convert a display-space pointer position into page pixels."""
    if scale <= 0:
        return display_x, display_y
    return display_x / scale, display_y / scale
