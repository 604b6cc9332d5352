# drill_preview.py
#
# Drilled-area geometry from a command list (what the board will look like after drilling).
# Hits become discs, slots become buffered lines (stadium shapes), like pad_from_ap "O" pads.

import logging
from typing import Iterable, List, Optional, Tuple

from shapely.geometry import LineString, Point
from shapely.ops import unary_union

from excellon_commands import (
    DRILL_AT,
    DRILL_MODE,
    LINEAR_MODE,
    RAPID_MODE,
    ROUTE_END,
    ROUTE_START,
    TOOL_DEFINE,
    TOOL_SELECT,
    Command,
)

_LOGGER_NAME = "pcb_drill.preview"
_default_logger = logging.getLogger(_LOGGER_NAME)

_MAX_REASONABLE_MM = 2000.0
_MIN_REASONABLE_MM = 0.01
CIRCLE_SEGMENTS = 16  # quad_segs per quarter circle


def _get_logger(logger: Optional[logging.Logger]) -> logging.Logger:
    return logger if logger is not None else _default_logger


def hit_footprint(x: float, y: float, diameter: float):
    return Point(x, y).buffer(diameter / 2.0, quad_segs=CIRCLE_SEGMENTS)


def slot_footprint(p1: Tuple[float, float], p2: Tuple[float, float], diameter: float):
    if p1 == p2:
        return hit_footprint(p1[0], p1[1], diameter)
    return LineString([p1, p2]).buffer(diameter / 2.0, quad_segs=CIRCLE_SEGMENTS)


def footprints_from_commands(commands: Iterable[Command]) -> List:
    """
    Walks the command stream the way a drilling machine would:
    tool_select picks the bit, rapid+drill_at positions, route_start lowers,
    linear+drill_at cuts a slot, route_end lifts.
    """
    diameters = {}
    out = []
    d = None
    rapid = False
    linear = False
    down = False
    pos = None

    for c in commands:
        k = c.kind
        if k == TOOL_DEFINE:
            diameters[c["tool_number"]] = float(c["diameter"])
        elif k == TOOL_SELECT:
            d = diameters.get(c["tool_number"])
            pos = None
        elif k == RAPID_MODE:
            rapid, linear = True, False
        elif k == LINEAR_MODE:
            rapid, linear = False, True
        elif k == ROUTE_START:
            down = True
        elif k == ROUTE_END:
            down = False
        elif k == DRILL_MODE:
            rapid = linear = down = False
        elif k == DRILL_AT:
            if d is None:
                continue
            xy = (float(c["x"]), float(c["y"]))
            if rapid:
                pos = xy
            elif linear and down and pos is not None:
                out.append(slot_footprint(pos, xy, d))
                pos = xy
            else:
                out.append(hit_footprint(xy[0], xy[1], d))

    return out


def drilled_area(commands: Iterable[Command]):
    return unary_union(footprints_from_commands(commands))


def check_extents(geom, *, logger: Optional[logging.Logger] = None) -> Optional[Tuple[float, float]]:
    """Returns (w, h) of the drilled area, warning on implausible sizes."""
    lg = _get_logger(logger)
    if geom is None or geom.is_empty:
        return None

    minx, miny, maxx, maxy = geom.bounds
    w = maxx - minx
    h = maxy - miny
    if w > _MAX_REASONABLE_MM or h > _MAX_REASONABLE_MM:
        lg.warning(f"Drill extents very large ({w:.1f} x {h:.1f} mm). Check units.")
    if w < _MIN_REASONABLE_MM and h < _MIN_REASONABLE_MM:
        lg.warning(f"Drill extents very small ({w:.6f} x {h:.6f} mm). Check diameters.")
    return w, h
