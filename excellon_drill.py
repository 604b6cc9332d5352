# excellon_drill.py
#
# Circuit elements -> ordered Excellon drill commands.
#
# One pass groups drillable elements by exact tool diameter (tool numbers follow first
# encounter, starting at settings.tool_number_base), then each tool's group is emitted
# in element order. Tool definitions do not depend on the plated filter.
# All state lives in the call; nothing here mutates the input.

import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from circuit_elements import (
    PlatedHole,
    Via,
    as_circuit_element,
    is_drill_element,
)
from excellon_commands import (
    ABSOLUTE_MODE,
    APERTURE_FUNCTION_HEADER,
    DRILL_AT,
    DRILL_MODE,
    END_OF_HEADER,
    FORMAT_SELECT,
    HEADER_ATTRIBUTE,
    HEADER_COMMENT,
    LINEAR_MODE,
    PROGRAM_END,
    RAPID_MODE,
    ROUTE_END,
    ROUTE_START,
    START_OF_HEADER,
    TOOL_DEFINE,
    TOOL_SELECT,
    UNIT_DECLARATION,
    Command,
    ExcellonDrillBuilder,
)
from hole_geometry import ResolvedHole, resolve_hole
from job_config import DrillSettings

_LOGGER_NAME = "pcb_drill.assembler"
_default_logger = logging.getLogger(_LOGGER_NAME)


def _get_logger(logger: Optional[logging.Logger]) -> logging.Logger:
    return logger if logger is not None else _default_logger


def format_timestamp(now: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix (2024-01-02T03:04:05.678Z)."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class ToolTable:
    """
    diameter -> tool number, assigned in first-encounter order from `base`.
    Keys are exact floats. After freeze() no new diameter may be added.
    """

    def __init__(self, base: int):
        self.base = int(base)
        self.next_number = self.base
        self._by_diameter: Dict[float, int] = {}
        self._holes: Dict[int, List[Tuple[object, ResolvedHole]]] = {}
        self.frozen = False

    def assign(self, diameter: float) -> Tuple[int, bool]:
        """Returns (tool_number, is_new)."""
        t = self._by_diameter.get(diameter)
        if t is not None:
            return t, False
        if self.frozen:
            raise RuntimeError(f"Tool table is frozen; cannot add diameter {diameter!r}")
        t = self.next_number
        self._by_diameter[diameter] = t
        self._holes[t] = []
        self.next_number += 1
        return t, True

    def add_hole(self, tool_number: int, element, hole: ResolvedHole) -> None:
        self._holes[tool_number].append((element, hole))

    def freeze(self) -> None:
        self.frozen = True

    def tool_numbers(self) -> range:
        return range(self.base, self.next_number)

    def diameter_of(self, tool_number: int) -> float:
        for d, t in self._by_diameter.items():
            if t == tool_number:
                return d
        raise KeyError(tool_number)

    def holes_for(self, tool_number: int) -> List[Tuple[object, ResolvedHole]]:
        return list(self._holes.get(tool_number, ()))

    def __len__(self) -> int:
        return len(self._by_diameter)


def _usable_diameter(d: Optional[float]) -> bool:
    # zero counts as "no diameter"
    return d is not None and d != 0


def _passes_plated_filter(element, is_plated: bool) -> bool:
    if is_plated:
        return True
    return not isinstance(element, (PlatedHole, Via))


def _add_header(b: ExcellonDrillBuilder, settings: DrillSettings, date_str: str) -> None:
    b.add(START_OF_HEADER)
    b.add(HEADER_COMMENT, text=f"DRILL file {{{settings.generation_software}}} date {date_str}")
    b.add(HEADER_COMMENT, text="FORMAT={-:-/ absolute / metric / decimal}")
    b.add(HEADER_ATTRIBUTE, name="TF.CreationDate", value=date_str)
    b.add(HEADER_ATTRIBUTE, name="TF.GenerationSoftware", value=settings.generation_software)
    b.add(HEADER_ATTRIBUTE, name="TF.FileFunction", value=settings.file_function)
    b.add(FORMAT_SELECT, version=settings.format_version)
    b.add(UNIT_DECLARATION, system=settings.unit_system, leading_zero_mode=settings.leading_zero_mode)


def _add_slot(b: ExcellonDrillBuilder, hole: ResolvedHole, y_mult: float) -> None:
    (x1, y1), (x2, y2) = hole.slot
    b.add(RAPID_MODE)
    b.add(DRILL_AT, x=x1, y=y1 * y_mult)
    b.add(ROUTE_START)
    b.add(LINEAR_MODE)
    b.add(DRILL_AT, x=x2, y=y2 * y_mult)
    b.add(ROUTE_END)
    b.add(DRILL_MODE)


def convert_elements_to_excellon_commands(
    elements: Iterable,
    *,
    is_plated: bool,
    flip_y_axis: bool = False,
    now: Optional[datetime] = None,
    settings: Optional[DrillSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[Command, ...]:
    """
    elements: circuit-JSON dicts and/or circuit_elements records
    is_plated: False drops PlatedHole and Via hits (tools are still defined)
    flip_y_axis: multiply every emitted Y by -1 (after offsets)

    Returns an immutable tuple of Command records.
    """
    lg = _get_logger(logger)
    settings = settings if settings is not None else DrillSettings()
    date_str = format_timestamp(now if now is not None else datetime.now(timezone.utc))

    b = ExcellonDrillBuilder()
    _add_header(b, settings, date_str)

    tools = ToolTable(settings.tool_number_base)
    skipped = 0

    for idx, raw in enumerate(elements):
        element = as_circuit_element(raw)
        if not is_drill_element(element):
            continue

        hole = resolve_hole(element)
        if hole is None or not _usable_diameter(hole.diameter):
            skipped += 1
            lg.debug("element %d (%s): no drill diameter, skipped", idx, element.type)
            continue

        t, is_new = tools.assign(hole.diameter)
        if is_new:
            b.add(APERTURE_FUNCTION_HEADER, is_plated=True)
            b.add(TOOL_DEFINE, tool_number=t, diameter=hole.diameter)
        tools.add_hole(t, element, hole)

    tools.freeze()

    b.add(END_OF_HEADER)
    b.add(ABSOLUTE_MODE)
    b.add(DRILL_MODE)

    y_mult = -1 if flip_y_axis else 1
    hits = 0
    slots = 0
    filtered = 0

    for t in tools.tool_numbers():
        b.add(TOOL_SELECT, tool_number=t)
        group = tools.holes_for(t)
        lg.debug("T%02d: %.4f mm, %d element(s)", t, tools.diameter_of(t), len(group))
        for element, hole in group:
            if not _passes_plated_filter(element, is_plated):
                filtered += 1
                continue

            if hole.slot is not None:
                _add_slot(b, hole, y_mult)
                slots += 1
            else:
                x, y = hole.center
                b.add(DRILL_AT, x=x, y=y * y_mult)
                hits += 1

    b.add(PROGRAM_END)

    lg.info(
        "Excellon: %d tool(s), %d hit(s), %d slot(s), %d filtered, %d skipped",
        len(tools), hits, slots, filtered, skipped,
    )
    return b.build()
