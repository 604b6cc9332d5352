# excellon_commands.py
#
# Structured Excellon drill commands.
# Kinds and field names are the contract with excellon_writer (and any other consumer),
# so they must stay stable. Numbers are kept at full precision; formatting is the writer's job.

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, List, Mapping, Tuple

START_OF_HEADER = "start_of_header"
HEADER_COMMENT = "header_comment"
HEADER_ATTRIBUTE = "header_attribute"
FORMAT_SELECT = "format_select"
UNIT_DECLARATION = "unit_declaration"
APERTURE_FUNCTION_HEADER = "aperture_function_header"
TOOL_DEFINE = "tool_define"
END_OF_HEADER = "end_of_header"
ABSOLUTE_MODE = "absolute_mode"
DRILL_MODE = "drill_mode"
TOOL_SELECT = "tool_select"
RAPID_MODE = "rapid_mode"
DRILL_AT = "drill_at"
ROUTE_START = "route_start"
LINEAR_MODE = "linear_mode"
ROUTE_END = "route_end"
PROGRAM_END = "program_end"

COMMAND_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    START_OF_HEADER: (),
    HEADER_COMMENT: ("text",),
    HEADER_ATTRIBUTE: ("name", "value"),
    FORMAT_SELECT: ("version",),
    UNIT_DECLARATION: ("system", "leading_zero_mode"),
    APERTURE_FUNCTION_HEADER: ("is_plated",),
    TOOL_DEFINE: ("tool_number", "diameter"),
    END_OF_HEADER: (),
    ABSOLUTE_MODE: (),
    DRILL_MODE: (),
    TOOL_SELECT: ("tool_number",),
    RAPID_MODE: (),
    DRILL_AT: ("x", "y"),
    ROUTE_START: (),
    LINEAR_MODE: (),
    ROUTE_END: (),
    PROGRAM_END: (),
})


class ExcellonCommandError(RuntimeError):
    pass


@dataclass(frozen=True)
class Command:
    kind: str
    params: Mapping[str, Any]

    def __getitem__(self, key: str) -> Any:
        return self.params[key]


def make_command(kind: str, **params) -> Command:
    fields = COMMAND_FIELDS.get(kind)
    if fields is None:
        raise ExcellonCommandError(f"Unknown Excellon command kind: {kind!r}")
    if set(params) != set(fields):
        raise ExcellonCommandError(
            f"{kind}: expected fields {sorted(fields)}, got {sorted(params)}"
        )
    ordered = {k: params[k] for k in fields}
    return Command(kind=kind, params=MappingProxyType(ordered))


class ExcellonDrillBuilder:
    """Append-only command list; build() hands out an immutable tuple."""

    def __init__(self):
        self._commands: List[Command] = []

    def add(self, kind: str, **params) -> "ExcellonDrillBuilder":
        self._commands.append(make_command(kind, **params))
        return self

    def __len__(self) -> int:
        return len(self._commands)

    def build(self) -> Tuple[Command, ...]:
        return tuple(self._commands)


def count_kind(commands, kind: str) -> int:
    return sum(1 for c in commands if c.kind == kind)
