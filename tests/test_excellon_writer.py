from datetime import datetime, timezone

import pytest

from excellon_commands import Command, ExcellonCommandError, ExcellonDrillBuilder, make_command
from excellon_drill import convert_elements_to_excellon_commands
from excellon_writer import render_command, stringify_excellon_drill, write_excellon_drill
from job_config import DrillSettings

NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _text(elements, **kw):
    cmds = convert_elements_to_excellon_commands(
        elements, is_plated=True, now=NOW, settings=DrillSettings(), **kw
    )
    return stringify_excellon_drill(cmds, DrillSettings())


def test_axial_resistor_board():
    soup = [
        {"type": "source_component", "source_component_id": "simple_resistor_0", "name": "R1"},
        {"type": "pcb_plated_hole", "x": -10, "y": 10, "hole_diameter": 2.5, "shape": "circle",
         "outer_diameter": 3.2},
        {"type": "pcb_plated_hole", "x": 0.3103934649070921, "y": -10.745920624907164,
         "hole_diameter": 1, "shape": "circle", "outer_diameter": 1.2},
        {"type": "pcb_via", "x": -4.281249780862737, "y": -14.233181814231745,
         "hole_diameter": 0.3, "outer_diameter": 0.6},
    ]
    out = _text(soup)
    lines = out.splitlines()
    assert "X-10.0000Y10.0000" in lines
    assert "T10C2.500000" in lines
    assert "T11C1.000000" in lines
    assert "T12C0.300000" in lines
    assert "X0.3104Y-10.7459" in lines
    assert "X-4.2812Y-14.2332" in lines
    assert lines[:3] == ["M48", ";DRILL file {tscircuit} date 2024-01-02T03:04:05.000Z",
                         ";FORMAT={-:-/ absolute / metric / decimal}"]
    assert "; #@! TF.FileFunction,Plated,1,2,PTH" in lines
    assert "; #@! TA.AperFunction,Plated,PTH,ComponentDrill" in lines
    assert "FMAT,2" in lines
    assert "METRIC" in lines
    assert lines[-1] == "M30"
    assert out.endswith("\n")
    i = lines.index("%")
    assert lines[i + 1:i + 4] == ["G90", "G05", "T10"]


def test_pill_with_rect_pad_applies_slot_offset():
    out = _text([{
        "type": "pcb_plated_hole", "shape": "pill_hole_with_rect_pad", "hole_shape": "pill",
        "pad_shape": "rect", "hole_width": 2.4, "hole_height": 0.6, "rect_pad_width": 3,
        "rect_pad_height": 1.2, "hole_offset_x": -0.3, "hole_offset_y": 0.2, "x": 1, "y": 2,
    }])
    lines = out.splitlines()
    i = lines.index("X-0.2000Y2.2000")
    assert lines[i - 1] == "G00"
    assert lines[i + 1:i + 6] == ["M15", "G01", "X1.6000Y2.2000", "M16", "G05"]


def test_rotated_pill_with_rect_pad_applies_slot_offset():
    out = _text([{
        "type": "pcb_plated_hole", "shape": "rotated_pill_hole_with_rect_pad",
        "hole_shape": "rotated_pill", "pad_shape": "rect", "hole_width": 1.4, "hole_height": 0.6,
        "hole_ccw_rotation": 90, "rect_ccw_rotation": 0, "hole_offset_x": 0.1,
        "hole_offset_y": 0.2, "x": 5, "y": 5,
    }])
    assert "X5.1000Y4.8000" in out
    assert "X5.1000Y5.6000" in out
    assert "T10C0.600000" in out


def test_negative_zero_renders_as_zero():
    out = _text([{"type": "pcb_hole", "x": 0, "y": 0, "hole_diameter": 1}], flip_y_axis=True)
    assert "X0.0000Y0.0000" in out.splitlines()


def test_render_variants():
    assert render_command(make_command("unit_declaration", system="METRIC", leading_zero_mode="LZ")) == "METRIC,LZ"
    assert render_command(make_command("aperture_function_header", is_plated=False)) == (
        "; #@! TA.AperFunction,NonPlated,NPTH,ComponentDrill"
    )
    assert render_command(make_command("tool_select", tool_number=3)) == "T03"
    assert render_command(make_command("drill_at", x=1.23456, y=-2), coord_decimals=3) == "X1.235Y-2.000"


def test_unknown_kind_rejected():
    with pytest.raises(ExcellonCommandError):
        render_command(Command(kind="bogus", params={}))
    with pytest.raises(ExcellonCommandError):
        ExcellonDrillBuilder().add("bogus")
    with pytest.raises(ExcellonCommandError):
        ExcellonDrillBuilder().add("drill_at", x=1.0)


def test_write_excellon_drill(tmp_path):
    cmds = convert_elements_to_excellon_commands([], is_plated=True, now=NOW, settings=DrillSettings())
    fn = write_excellon_drill(str(tmp_path / "out" / "board.drl"), cmds, DrillSettings())
    with open(fn) as f:
        text = f.read()
    assert text == stringify_excellon_drill(cmds, DrillSettings())
    assert text.splitlines()[-4:] == ["%", "G90", "G05", "M30"]


def test_default_stringify_ignores_job_settings_ini(tmp_path):
    (tmp_path / "job_settings.ini").write_text("[drill]\ncoord_decimals = 2\ndiameter_decimals = 2\n")
    cmds = convert_elements_to_excellon_commands(
        [{"type": "pcb_hole", "x": 1, "y": 2, "hole_diameter": 1.5}], is_plated=True, now=NOW
    )
    lines = stringify_excellon_drill(cmds).splitlines()
    assert "T10C1.500000" in lines
    assert "X1.0000Y2.0000" in lines
