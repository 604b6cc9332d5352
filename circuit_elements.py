# circuit_elements.py
#
# Circuit element records relevant to drilling.
# Parsing is permissive: positions are coerced to float, every other hole field is kept
# as given so hole_geometry can decide (totally, never raising) what is usable.

import json
import math
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

_LOGGER_NAME = "pcb_drill.elements"
_default_logger = logging.getLogger(_LOGGER_NAME)

PLATED_HOLE = "pcb_plated_hole"
UNPLATED_HOLE = "pcb_hole"
VIA = "pcb_via"


class CircuitJsonError(RuntimeError):
    pass


def _get_logger(logger: Optional[logging.Logger]) -> logging.Logger:
    return logger if logger is not None else _default_logger


def _num(val, default=0.0) -> float:
    """Safe numeric conversion:
    - None / "" / bool / invalid / nan / inf -> default
    """
    if val is None or isinstance(val, bool):
        return float(default)
    if isinstance(val, (int, float)):
        try:
            v = float(val)
        except OverflowError:
            return float(default)
    else:
        s = str(val).strip()
        if s == "":
            return float(default)
        try:
            v = float(s)
        except ValueError:
            return float(default)
    return v if math.isfinite(v) else float(default)


@dataclass(frozen=True)
class PlatedHole:
    x: float
    y: float
    shape: Any = None
    hole_shape: Any = None
    hole_diameter: Any = None
    hole_width: Any = None
    hole_height: Any = None
    hole_ccw_rotation: Any = None
    hole_offset_x: Any = None
    hole_offset_y: Any = None
    pcb_plated_hole_id: Optional[str] = None
    type: str = PLATED_HOLE


@dataclass(frozen=True)
class UnplatedHole:
    x: float
    y: float
    hole_diameter: Any = None
    pcb_hole_id: Optional[str] = None
    type: str = UNPLATED_HOLE


@dataclass(frozen=True)
class Via:
    x: float
    y: float
    hole_diameter: Any = None
    pcb_via_id: Optional[str] = None
    type: str = VIA


@dataclass(frozen=True)
class OtherElement:
    type: str


CircuitElement = Union[PlatedHole, UnplatedHole, Via, OtherElement]
DRILL_ELEMENT_TYPES = (PlatedHole, UnplatedHole, Via)


def _plated_hole_from_dict(d: Dict[str, Any]) -> PlatedHole:
    return PlatedHole(
        x=_num(d.get("x")),
        y=_num(d.get("y")),
        shape=d.get("shape"),
        hole_shape=d.get("hole_shape"),
        hole_diameter=d.get("hole_diameter"),
        hole_width=d.get("hole_width"),
        hole_height=d.get("hole_height"),
        hole_ccw_rotation=d.get("hole_ccw_rotation"),
        hole_offset_x=d.get("hole_offset_x"),
        hole_offset_y=d.get("hole_offset_y"),
        pcb_plated_hole_id=d.get("pcb_plated_hole_id"),
    )


def _unplated_hole_from_dict(d: Dict[str, Any]) -> UnplatedHole:
    return UnplatedHole(
        x=_num(d.get("x")),
        y=_num(d.get("y")),
        hole_diameter=d.get("hole_diameter"),
        pcb_hole_id=d.get("pcb_hole_id"),
    )


def _via_from_dict(d: Dict[str, Any]) -> Via:
    return Via(
        x=_num(d.get("x")),
        y=_num(d.get("y")),
        hole_diameter=d.get("hole_diameter"),
        pcb_via_id=d.get("pcb_via_id"),
    )


_FROM_DICT = {
    PLATED_HOLE: _plated_hole_from_dict,
    UNPLATED_HOLE: _unplated_hole_from_dict,
    VIA: _via_from_dict,
}


def as_circuit_element(obj) -> CircuitElement:
    """
    Accepts a circuit-JSON dict or an already-built element.
    Dicts are read, never mutated. Unknown types become OtherElement.
    """
    if isinstance(obj, (PlatedHole, UnplatedHole, Via, OtherElement)):
        return obj
    if isinstance(obj, dict):
        t = obj.get("type")
        build = _FROM_DICT.get(t)
        if build is None:
            return OtherElement(type=str(t) if t is not None else "")
        return build(obj)
    return OtherElement(type=type(obj).__name__)


def parse_circuit_elements(records: Iterable[Any]) -> List[CircuitElement]:
    return [as_circuit_element(r) for r in records]


def is_drill_element(element) -> bool:
    return isinstance(element, DRILL_ELEMENT_TYPES)


def load_circuit_json(fn: str, *, logger: Optional[logging.Logger] = None) -> List[CircuitElement]:
    lg = _get_logger(logger)

    with open(fn, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise CircuitJsonError(f"{fn}: expected a JSON array of circuit elements, got {type(data).__name__}")

    elements = parse_circuit_elements(data)
    n_drill = sum(1 for e in elements if is_drill_element(e))
    lg.debug("%s: %d elements, %d drill candidates", fn, len(elements), n_drill)
    return elements
