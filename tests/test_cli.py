"""Command-line conversion."""
import json

from pddlviz.cli.convert import main


def test_graph_output_to_file(tmp_path):
    out = tmp_path / "out.json"
    assert main(["examples/robot-domain.pddl", "--output", str(out)]) == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["type"] == "graph"
    groups = [e for e in payload["elements"] if e["type"] == "group"]
    assert [g["data"]["name"] for g in groups] == ["move", "pick-up", "drop"]


def test_mind_mode_to_stdout(capsys):
    assert main(["examples/robot-problem.pddl", "--mode", "mind"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["type"] == "mind"
    assert payload["root"]["text"] == "Problem: deliver-one"


def test_structured_source(capsys):
    assert main(["examples/robot-problem.yaml"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["elements"][0]["data"]["type"] == "problem"


def test_layout_config_applies(tmp_path, capsys):
    cfg = tmp_path / "layout.yaml"
    cfg.write_text("layout:\n  start_x: 0\n  start_y: 0\n", encoding="utf-8")
    assert main(["examples/robot-domain.pddl", "--config", str(cfg)]) == 0
    elements = json.loads(capsys.readouterr().out)["elements"]
    title = next(e for e in elements if e["type"] == "geometry")
    assert title["points"][0] == [0.0, 0.0]


def test_parse_error_exits_with_message(tmp_path, capsys):
    src = tmp_path / "empty.pddl"
    src.write_text("; nothing here\n", encoding="utf-8")
    assert main([str(src)]) == 1
    err = capsys.readouterr().err
    assert err.strip() == "error: PDDL content is empty."


def test_mind_mode_rejects_structured_source(capsys):
    assert main(["examples/robot-problem.yaml", "--mode", "mind"]) == 1
    assert "Mind-map mode" in capsys.readouterr().err


def test_missing_source_exits_with_message(capsys):
    assert main(["nowhere/missing.pddl"]) == 1
    assert "Source not found" in capsys.readouterr().err
