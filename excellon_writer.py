# excellon_writer.py
#
# Excellon text rendering of excellon_commands.Command lists.
# Depends only on excellon_commands and job_config.

import os
from typing import Iterable, Optional

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
    ExcellonCommandError,
)
from job_config import DrillSettings

_FIXED_CODES = {
    START_OF_HEADER: "M48",
    END_OF_HEADER: "%",
    ABSOLUTE_MODE: "G90",
    DRILL_MODE: "G05",
    RAPID_MODE: "G00",
    ROUTE_START: "M15",
    LINEAR_MODE: "G01",
    ROUTE_END: "M16",
    PROGRAM_END: "M30",
}


def _fmt(v: float, decimals: int) -> str:
    # + 0.0 turns -0.0 into 0.0
    return f"{float(v) + 0.0:.{decimals}f}"


def _tool(n: int) -> str:
    return f"T{int(n):02d}"


def render_command(cmd: Command, *, coord_decimals: int = 4, diameter_decimals: int = 6) -> str:
    kind = cmd.kind

    code = _FIXED_CODES.get(kind)
    if code is not None:
        return code

    p = cmd.params
    if kind == HEADER_COMMENT:
        return f";{p['text']}"
    if kind == HEADER_ATTRIBUTE:
        return f"; #@! {p['name']},{p['value']}"
    if kind == FORMAT_SELECT:
        return f"FMAT,{p['version']}"
    if kind == UNIT_DECLARATION:
        lz = p["leading_zero_mode"]
        return f"{p['system']},{lz}" if lz else f"{p['system']}"
    if kind == APERTURE_FUNCTION_HEADER:
        if p["is_plated"]:
            return "; #@! TA.AperFunction,Plated,PTH,ComponentDrill"
        return "; #@! TA.AperFunction,NonPlated,NPTH,ComponentDrill"
    if kind == TOOL_DEFINE:
        return f"{_tool(p['tool_number'])}C{_fmt(p['diameter'], diameter_decimals)}"
    if kind == TOOL_SELECT:
        return _tool(p["tool_number"])
    if kind == DRILL_AT:
        return f"X{_fmt(p['x'], coord_decimals)}Y{_fmt(p['y'], coord_decimals)}"

    raise ExcellonCommandError(f"No Excellon rendering for command kind {kind!r}")


def stringify_excellon_drill(commands: Iterable[Command], settings: Optional[DrillSettings] = None) -> str:
    settings = settings if settings is not None else DrillSettings()
    lines = [
        render_command(
            c,
            coord_decimals=settings.coord_decimals,
            diameter_decimals=settings.diameter_decimals,
        )
        for c in commands
    ]
    return "\n".join(lines) + "\n"


def write_excellon_drill(fn: str, commands: Iterable[Command], settings: Optional[DrillSettings] = None) -> str:
    text = stringify_excellon_drill(commands, settings)
    d = os.path.dirname(os.path.abspath(fn))
    os.makedirs(d, exist_ok=True)
    with open(fn, "w", newline="\n") as g:
        g.write(text)
    return fn
