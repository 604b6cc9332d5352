# main.py
# Command line entry point
# circuit JSON in, Excellon drill file out

import argparse
import logging
import sys

from circuit_elements import CircuitJsonError, load_circuit_json
from drill_preview import check_extents, drilled_area
from excellon_commands import DRILL_AT, TOOL_DEFINE, count_kind
from excellon_drill import convert_elements_to_excellon_commands
from excellon_writer import write_excellon_drill
from job_config import load_drill_settings


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Convert circuit JSON to an Excellon drill file")
    p.add_argument("input", help="circuit JSON file (array of circuit elements)")
    p.add_argument("-o", "--output", default="drill.drl", help="output .drl file (default: drill.drl)")
    p.add_argument(
        "--unplated-only",
        action="store_true",
        help="drop plated holes and vias from the drill body (tools are still defined)",
    )
    p.add_argument("--flip-y", action="store_true", help="negate every Y coordinate")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = load_drill_settings()

    try:
        elements = load_circuit_json(args.input)
    except (OSError, ValueError, CircuitJsonError) as e:
        print(f"[DRILL] Cannot read {args.input}: {e}")
        return 1

    is_plated = settings.include_plated and not args.unplated_only
    flip_y = settings.flip_y_axis or args.flip_y

    commands = convert_elements_to_excellon_commands(
        elements,
        is_plated=is_plated,
        flip_y_axis=flip_y,
        settings=settings,
    )
    write_excellon_drill(args.output, commands, settings)

    n_tools = count_kind(commands, TOOL_DEFINE)
    n_hits = count_kind(commands, DRILL_AT)
    ext = check_extents(drilled_area(commands))
    if ext:
        print(f"[DRILL] {n_tools} tool(s), {n_hits} drill position(s), extents {ext[0]:.2f} x {ext[1]:.2f} mm")
    else:
        print(f"[DRILL] {n_tools} tool(s), nothing to drill")
    print(f"[DRILL] Wrote {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
