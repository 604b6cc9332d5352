# hole_geometry.py
#
# Drill geometry for one circuit element.
# Everything here is total: missing or mistyped fields degrade to "no diameter",
# "no slot" or a zero offset, never an exception.
#
# Offsets move the drill center only (the pad stays at the nominal x/y).
# Rotation is CCW in board coordinates, before any Y flip applied at emission.

import math
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from circuit_elements import PlatedHole, UnplatedHole, Via

XY = Tuple[float, float]


class HoleShape(Enum):
    CIRCLE = "circle"
    PILL = "pill"
    ROTATED_PILL = "rotated_pill"

    @property
    def is_slot(self) -> bool:
        return self in (HoleShape.PILL, HoleShape.ROTATED_PILL)


# Known hole_shape / shape tags, including pad-qualified aliases.
_KNOWN_SHAPES = {
    "circle": HoleShape.CIRCLE,
    "oval": HoleShape.CIRCLE,
    "circular_hole_with_rect_pad": HoleShape.CIRCLE,
    "hole_with_polygon_pad": HoleShape.CIRCLE,
    "pill": HoleShape.PILL,
    "pill_hole_with_rect_pad": HoleShape.PILL,
    "rotated_pill": HoleShape.ROTATED_PILL,
    "rotated_pill_hole_with_rect_pad": HoleShape.ROTATED_PILL,
}


class Slot(NamedTuple):
    start: XY
    end: XY


@dataclass(frozen=True)
class ResolvedHole:
    center: XY
    diameter: float
    slot: Optional[Slot] = None


def _number(v) -> Optional[float]:
    """Finite int/float (not bool) -> float, anything else -> None."""
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return None
    v = float(v)
    if not math.isfinite(v):
        return None
    return v


def resolve_offset(element) -> XY:
    if not isinstance(element, PlatedHole):
        return 0.0, 0.0
    dx = _number(element.hole_offset_x)
    dy = _number(element.hole_offset_y)
    if dx is None or dy is None:
        return 0.0, 0.0
    return dx, dy


def resolve_shape_tag(element) -> Optional[str]:
    """hole_shape wins over shape (shape may mix pad and hole, e.g. pill_hole_with_rect_pad)."""
    if not isinstance(element, PlatedHole):
        return None
    if isinstance(element.hole_shape, str):
        return element.hole_shape
    if isinstance(element.shape, str):
        return element.shape
    return None


def classify_hole_shape(tag: Optional[str]) -> Optional[HoleShape]:
    if not isinstance(tag, str):
        return None
    known = _KNOWN_SHAPES.get(tag)
    if known is not None:
        return known
    if "pill" in tag:
        return HoleShape.ROTATED_PILL if "rotated" in tag else HoleShape.PILL
    return HoleShape.CIRCLE


def hole_shape_of(element) -> Optional[HoleShape]:
    return classify_hole_shape(resolve_shape_tag(element))


def _hole_size(element) -> Optional[XY]:
    w = _number(element.hole_width)
    h = _number(element.hole_height)
    if w is None or h is None:
        return None
    return w, h


def resolve_tool_diameter(element) -> Optional[float]:
    """
    Drill bit diameter for an element, or None (element is not drilled).
    Pills without hole_diameter are routed with a bit sized to the minor axis.
    """
    if not isinstance(element, (PlatedHole, UnplatedHole, Via)):
        return None

    d = _number(element.hole_diameter)
    if d is not None:
        return d

    if isinstance(element, PlatedHole):
        shape = hole_shape_of(element)
        size = _hole_size(element)
        if shape is not None and shape.is_slot and size is not None:
            return min(size)

    return None


def resolve_center(element) -> XY:
    dx, dy = resolve_offset(element)
    return element.x + dx, element.y + dy


def resolve_slot_endpoints(element, center: XY) -> Optional[Slot]:
    if not isinstance(element, PlatedHole):
        return None

    shape = hole_shape_of(element)
    if shape is None or not shape.is_slot:
        return None

    size = _hole_size(element)
    if size is None:
        return None

    width, height = size
    major = max(width, height)
    minor = min(width, height)
    half_slot = (major - minor) / 2.0
    if half_slot <= 0:
        # equal axes: plain circular drill
        return None

    rotation_deg = 0.0
    if shape is HoleShape.ROTATED_PILL:
        r = _number(element.hole_ccw_rotation)
        if r is not None:
            rotation_deg = r

    base_angle = 0.0 if width >= height else math.pi / 2.0
    angle = base_angle + rotation_deg * math.pi / 180.0
    ax, ay = math.cos(angle), math.sin(angle)

    cx, cy = center
    return Slot(
        start=(cx - ax * half_slot, cy - ay * half_slot),
        end=(cx + ax * half_slot, cy + ay * half_slot),
    )


def resolve_hole(element) -> Optional[ResolvedHole]:
    d = resolve_tool_diameter(element)
    if d is None:
        return None
    center = resolve_center(element)
    return ResolvedHole(center=center, diameter=d, slot=resolve_slot_endpoints(element, center))
