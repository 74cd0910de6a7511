import json

import pytest

import sketchcore.__main__ as cli
from sketchcore import constraints as C
from sketchcore.serialize import document_to_dict
from sketchcore.sketch import SketchModel


def _write_document(tmp_path, sketch, cons):
    path = tmp_path / "sketch.json"
    path.write_text(json.dumps(document_to_dict(sketch, cons)), encoding="utf-8")
    return path


def _square_document(tmp_path):
    sketch = SketchModel()
    rect = sketch.add_rectangle(1.0, 1.0, 2.2, 1.9)
    bottom, right, top, left = rect.lines
    p0, p1, p2, _ = rect.points
    cons = [
        C.fixed(p0, (0.0, 0.0)),
        C.horizontal_line(bottom),
        C.horizontal_line(top),
        C.vertical_line(left),
        C.vertical_line(right),
        C.distance(p0, p1, 2.0),
        C.distance(p1, p2, 2.0),
    ]
    return _write_document(tmp_path, sketch, cons), rect


def test_main_prints_json_report(tmp_path, capsys):
    path, rect = _square_document(tmp_path)
    code = cli.main([str(path), "--profile"])
    report = json.loads(capsys.readouterr().out)

    assert code == 0
    assert report["result"]["status"] == "success"
    assert report["dof"]["remaining_dof"] == 0
    assert report["points"][str(rect.points[2])] == pytest.approx([2.0, 2.0], abs=1e-7)
    assert report["profile"][0]["is_outer"]
    assert report["profile"][0]["area"] == pytest.approx(4.0, abs=1e-6)
    assert report["profile_errors"] == []


def test_main_applies_drive_and_tolerance(tmp_path, capsys):
    sketch = SketchModel()
    anchor = sketch.add_fixed_point(0.0, 0.0)
    p = sketch.add_point(1.0, 0.0)
    path = _write_document(tmp_path, sketch, [C.horizontal_points(anchor, p)])

    code = cli.main([str(path), "--drive", f"{p}:4,2", "--tolerance", "1e-6", "--max-iterations", "50"])
    report = json.loads(capsys.readouterr().out)

    assert code == 0
    assert report["result"]["status"] == "converged"
    x, y = report["points"][str(p)]
    assert x == pytest.approx(4.0, abs=1e-3)
    assert abs(y) <= 1e-6


def test_main_returns_2_on_failure(tmp_path, capsys):
    sketch = SketchModel()
    a = sketch.add_point(0.0, 0.0)
    path = _write_document(tmp_path, sketch, [C.coincident(a, 17)])
    code = cli.main([str(path)])
    report = json.loads(capsys.readouterr().out)
    assert code == 2
    assert report["result"]["status"] == "failed"
    assert report["result"]["skipped"]


def test_invalid_drive_value_exits(tmp_path):
    path, _ = _square_document(tmp_path)
    with pytest.raises(SystemExit):
        cli.main([str(path), "--drive", "nonsense"])


def test_configure_logging_uses_requested_level(monkeypatch):
    calls = []
    monkeypatch.setattr(cli.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    cli._configure_logging("debug")
    assert calls[0]["level"] == cli.logging.DEBUG
    assert calls[0]["format"] == "%(levelname)s:%(name)s:%(message)s"
