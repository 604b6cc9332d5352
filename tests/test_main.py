import json

from excellon_parser import parse_excellon_file
import main


BOARD = [
    {"type": "pcb_plated_hole", "x": 0, "y": 1, "shape": "circle", "hole_diameter": 1.0},
    {"type": "pcb_hole", "x": 5, "y": 2, "hole_diameter": 3.0},
]


def _write_board(tmp_path):
    fn = tmp_path / "board.json"
    fn.write_text(json.dumps(BOARD))
    return str(fn)


def test_cli_writes_drill_file(tmp_path, capsys):
    out = tmp_path / "board.drl"
    assert main.main([_write_board(tmp_path), "-o", str(out)]) == 0

    ex = parse_excellon_file(str(out))
    assert sorted(ex.all_holes()) == [(0.0, 1.0, 1.0), (5.0, 2.0, 3.0)]
    assert "[DRILL] Wrote" in capsys.readouterr().out


def test_cli_unplated_only_and_flip(tmp_path):
    out = tmp_path / "npth.drl"
    assert main.main([_write_board(tmp_path), "-o", str(out), "--unplated-only", "--flip-y"]) == 0

    ex = parse_excellon_file(str(out))
    assert sorted(ex.tools) == [10, 11]
    assert ex.all_holes() == [(5.0, -2.0, 3.0)]


def test_cli_missing_input(tmp_path, capsys):
    assert main.main([str(tmp_path / "nope.json")]) == 1
    assert "Cannot read" in capsys.readouterr().out
