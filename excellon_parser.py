# excellon_parser.py
# Excellon (DRL) reader for the drill files excellon_writer produces
# Units: millimeters internally
#
# - METRIC / INCH headers (with optional ,LZ / ,TZ), M71/M72
# - T..C.. tool definitions, ; #@! header attributes
# - plain hits and routed slots:
#     G00 + XY   -> move only (no hit)
#     M15        -> tool down at the current position
#     G01 + XY   -> slot segment from the current position
#     M16 / G05  -> tool up, back to drilling
# - coordinates without a decimal point use FILE_FORMAT + zero suppression

import os
import re
import logging
from typing import Dict, List, Optional, Tuple

_MAX_REASONABLE_MM = 2000.0

_LOGGER_NAME = "pcb_drill.parser"
_default_logger = logging.getLogger(_LOGGER_NAME)


class ExcellonParseError(RuntimeError):
    pass


def _get_logger(logger: Optional[logging.Logger]) -> logging.Logger:
    return logger if logger is not None else _default_logger


def _warn(logger: logging.Logger, msg: str, *, strict: bool) -> None:
    logger.warning(msg)
    if strict:
        raise ExcellonParseError(msg)


_TOOL_DEF_RE = re.compile(r"^T(\d+)C([\d\.]+)$")
_TOOL_SEL_RE = re.compile(r"^T(\d+)$")
_XY_RE = re.compile(r"^X(-?[\d\.]+)Y(-?[\d\.]+)$")
_ATTR_RE = re.compile(r"^;\s*#@!\s*([A-Za-z]+\.[A-Za-z]+),(.*)$")
_FILE_FMT_RE = re.compile(r"FILE_FORMAT\s*=\s*(\d+)\s*:\s*(\d+)", re.IGNORECASE)
_UNIT_RE = re.compile(r"^(METRIC|INCH)(?:\s*,\s*(LZ|TZ))?", re.IGNORECASE)


class ExcellonTool:
    def __init__(self, number: int, diameter: float):
        self.number = number
        self.diameter = diameter
        self.holes: List[Tuple[float, float]] = []
        self.slots: List[Tuple[Tuple[float, float], Tuple[float, float]]] = []


class ExcellonFile:
    def __init__(self):
        self.tools: Dict[int, ExcellonTool] = {}
        self.attributes: Dict[str, str] = {}
        self.units = "mm"
        self.zero_suppression = "leading"
        self.format = (3, 3)

    def all_holes(self):
        out = []
        for t in self.tools.values():
            for x, y in t.holes:
                out.append((x, y, t.diameter))
        return out

    def all_slots(self):
        out = []
        for t in self.tools.values():
            for p1, p2 in t.slots:
                out.append((p1, p2, t.diameter))
        return out

    def parse_coord(self, token: str) -> float:
        """Decimal tokens as-is; otherwise fixed digits per format and zero suppression."""
        if "." in token:
            return float(token)

        neg = token.startswith("-")
        digits = token.lstrip("+-")
        int_d, dec_d = self.format
        total = int_d + dec_d
        if self.zero_suppression == "leading":
            digits = digits.rjust(total, "0")
        else:
            digits = digits.ljust(total, "0")
        v = int(digits) / (10 ** dec_d)
        return -v if neg else v


def parse_excellon_text(
    text: str,
    *,
    name: str = "<excellon>",
    strict: bool = False,
    logger: Optional[logging.Logger] = None,
) -> ExcellonFile:
    lg = _get_logger(logger)
    ex = ExcellonFile()

    unit_scale = 1.0
    current: Optional[ExcellonTool] = None
    mode = "drill"  # drill | rapid | linear
    tool_down = False
    pos: Optional[Tuple[float, float]] = None
    saw_units = False
    points = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        if line.startswith(";"):
            m = _ATTR_RE.match(line)
            if m:
                ex.attributes[m.group(1)] = m.group(2).strip()
                continue
            m = _FILE_FMT_RE.search(line)
            if m:
                ex.format = (int(m.group(1)), int(m.group(2)))
            continue

        m = _UNIT_RE.match(line)
        if m or line in ("M71", "M72"):
            inch = (m.group(1).upper() == "INCH") if m else line == "M72"
            ex.units = "inch" if inch else "mm"
            unit_scale = 25.4 if inch else 1.0
            if m and m.group(2):
                # LZ keeps leading zeros, so trailing ones are suppressed
                ex.zero_suppression = "trailing" if m.group(2).upper() == "LZ" else "leading"
            saw_units = True
            continue

        if line in ("M48", "%", "G90") or line.startswith("FMAT"):
            continue
        if line == "M30":
            break

        if line == "G05":
            mode = "drill"
            tool_down = False
            continue
        if line == "G00":
            mode = "rapid"
            continue
        if line == "G01":
            mode = "linear"
            continue
        if line == "M15":
            tool_down = True
            continue
        if line == "M16":
            tool_down = False
            continue

        m = _TOOL_DEF_RE.match(line)
        if m:
            n = int(m.group(1))
            ex.tools[n] = ExcellonTool(n, float(m.group(2)) * unit_scale)
            continue

        m = _TOOL_SEL_RE.match(line)
        if m:
            n = int(m.group(1))
            current = ex.tools.get(n)
            pos = None
            if current is None:
                _warn(lg, f"{name}:{line_no}: selected T{n:02d} without definition.", strict=strict)
            continue

        m = _XY_RE.match(line)
        if m:
            try:
                x = ex.parse_coord(m.group(1)) * unit_scale
                y = ex.parse_coord(m.group(2)) * unit_scale
            except ValueError:
                _warn(lg, f"{name}:{line_no}: bad XY: {line}", strict=strict)
                continue
            if current is None:
                _warn(lg, f"{name}:{line_no}: XY without a defined tool; dropping hit.", strict=strict)
                continue

            if mode == "rapid":
                pos = (x, y)
            elif mode == "linear":
                if tool_down and pos is not None:
                    current.slots.append((pos, (x, y)))
                else:
                    _warn(lg, f"{name}:{line_no}: G01 move with tool up; ignored.", strict=strict)
                pos = (x, y)
            else:
                current.holes.append((x, y))
            points.append((x, y))
            continue

        _warn(lg, f"{name}:{line_no}: unrecognized line: {line}", strict=strict)

    if not saw_units:
        _warn(lg, f"{name}: no explicit units; defaulted to mm.", strict=False)
    if not ex.tools:
        _warn(lg, f"{name}: no tool definitions found (TxxC...).", strict=False)

    if points:
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        w = max(xs) - min(xs)
        h = max(ys) - min(ys)
        if w > _MAX_REASONABLE_MM or h > _MAX_REASONABLE_MM:
            _warn(lg, f"{name}: very large extents ({w:.1f} x {h:.1f} mm). Check units.", strict=False)

    return ex


def parse_excellon_file(filename, *, strict: bool = False, logger: Optional[logging.Logger] = None) -> ExcellonFile:
    lg = _get_logger(logger)
    if not filename or not os.path.exists(filename):
        _warn(lg, f"Excellon: file not found: {filename}", strict=strict)
        return ExcellonFile()

    with open(filename, "r", errors="ignore") as f:
        text = f.read()
    return parse_excellon_text(text, name=os.path.basename(filename), strict=strict, logger=lg)
