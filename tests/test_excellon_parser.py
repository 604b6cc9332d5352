from datetime import datetime, timezone

import pytest

from excellon_drill import convert_elements_to_excellon_commands
from excellon_parser import ExcellonParseError, parse_excellon_file, parse_excellon_text
from excellon_writer import stringify_excellon_drill, write_excellon_drill
from job_config import DrillSettings

NOW = datetime(2024, 1, 2, tzinfo=timezone.utc)

BOARD = [
    {"type": "pcb_via", "x": 1, "y": 1, "hole_diameter": 0.3},
    {"type": "pcb_hole", "x": 4, "y": -2, "hole_diameter": 3.0},
    {"type": "pcb_plated_hole", "x": 1, "y": 2, "hole_shape": "pill",
     "hole_width": 2.4, "hole_height": 0.6},
]


def _commands():
    return convert_elements_to_excellon_commands(BOARD, is_plated=True, now=NOW, settings=DrillSettings())


def test_reads_back_generated_file():
    ex = parse_excellon_text(stringify_excellon_drill(_commands(), DrillSettings()), strict=True)

    assert sorted(ex.tools) == [10, 11, 12]
    assert ex.units == "mm"
    assert ex.attributes["TF.GenerationSoftware"] == "tscircuit"
    assert sorted(ex.all_holes()) == [(1.0, 1.0, 0.3), (4.0, -2.0, 3.0)]

    slots = ex.all_slots()
    assert len(slots) == 1
    (x1, y1), (x2, y2), d = slots[0]
    assert (x1, y1, x2, y2, d) == pytest.approx((0.1, 2.0, 1.9, 2.0, 0.6))


def test_parse_file(tmp_path):
    fn = write_excellon_drill(str(tmp_path / "b.drl"), _commands(), DrillSettings())
    ex = parse_excellon_file(fn)
    assert len(ex.all_holes()) == 2


def test_missing_file_is_empty_unless_strict(tmp_path):
    assert parse_excellon_file(str(tmp_path / "nope.drl")).tools == {}
    with pytest.raises(ExcellonParseError):
        parse_excellon_file(str(tmp_path / "nope.drl"), strict=True)


def test_inch_units_and_fixed_format():
    text = "\n".join([
        "M48",
        ";FILE_FORMAT=2:4",
        "INCH,LZ",
        "T01C0.0400",
        "%",
        "T01",
        "X01Y005",
        "M30",
    ])
    ex = parse_excellon_text(text)
    (x, y, d), = ex.all_holes()
    assert d == pytest.approx(1.016)
    assert x == pytest.approx(25.4)
    assert y == pytest.approx(12.7)


def test_unrecognized_line(caplog):
    text = "M48\nMETRIC\nT01C1.0\n%\nT01\nBOGUS\nM30\n"
    parse_excellon_text(text)
    assert "unrecognized line" in caplog.text
    with pytest.raises(ExcellonParseError):
        parse_excellon_text(text, strict=True)
