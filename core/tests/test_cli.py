"""Tests for the interactions command-line interface."""

import json
import logging

import pytest

from interactions.cli import main
from interactions.config import CONFIG_ENV_VAR

FLOW = {
    "meta": {"generated": "2024-06-10T12:00:00Z", "app": "test", "version": "1.0"},
    "project": {
        "id": "proj_cli",
        "name": "Gas Station",
        "data": {
            "nodes": [
                {"id": "start", "type": "START"},
                {
                    "id": "check",
                    "type": "CONDITION",
                    "data": {
                        "variableName": "honor_level",
                        "conditionOperator": ">",
                        "variableValue": "50",
                    },
                },
                {
                    "id": "hello",
                    "type": "DIALOGUE",
                    "data": {
                        "npcName": "Clerk",
                        "text": "Need fuel?",
                        "choices": [
                            {"id": "fill", "text": "Fill it up"},
                            {"id": "bye", "text": "No thanks"},
                        ],
                    },
                },
                {
                    "id": "paid",
                    "type": "SET_VARIABLE",
                    "data": {"variableName": "fueled", "variableValue": "yes"},
                },
                {"id": "thanks", "type": "DIALOGUE", "data": {"text": "Drive safe."}},
                {"id": "end", "type": "END"},
            ],
            "connections": [
                {"id": "k1", "fromNodeId": "start", "toNodeId": "check"},
                {"id": "k2", "fromNodeId": "check", "fromPort": "true", "toNodeId": "hello"},
                {"id": "k3", "fromNodeId": "check", "fromPort": "false", "toNodeId": "end"},
                {"id": "k4", "fromNodeId": "hello", "fromPort": "fill", "toNodeId": "paid"},
                {"id": "k5", "fromNodeId": "hello", "fromPort": "bye", "toNodeId": "end"},
                {"id": "k6", "fromNodeId": "paid", "toNodeId": "thanks"},
            ],
        },
    },
}


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "configuration.json"))
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def flow_file(tmp_path):
    path = tmp_path / "gas_station.json"
    path.write_text(json.dumps(FLOW), encoding="utf-8")
    return path


def test_validate_clean_flow(flow_file, capsys):
    assert main(["validate", str(flow_file)]) == 0

    assert "no problems found" in capsys.readouterr().out


def test_validate_reports_problems(tmp_path, capsys):
    broken = json.loads(json.dumps(FLOW))
    broken["project"]["data"]["connections"].append(
        {"id": "k9", "fromNodeId": "thanks", "fromPort": "main", "toNodeId": "ghost"}
    )
    path = tmp_path / "broken.json"
    path.write_text(json.dumps(broken), encoding="utf-8")

    assert main(["validate", str(path)]) == 1

    out = capsys.readouterr().out
    assert "missing target 'ghost'" in out
    assert "invalid port 'main'" in out


def test_traverse_prints_node_and_memory(flow_file, capsys):
    code = main(["traverse", str(flow_file), "paid", "--memory", '{"cash": "20"}'])

    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "thanks"
    assert json.loads("\n".join(lines[1:])) == {"cash": "20", "fueled": "yes"}


def test_traverse_no_path(flow_file, capsys):
    code = main(["traverse", str(flow_file), "ghost"])

    assert code == 1
    assert capsys.readouterr().out.startswith("no path")


def test_traverse_rejects_non_object_memory(flow_file, capsys):
    assert main(["traverse", str(flow_file), "start", "--memory", "[1]"]) == 2


def test_simulate_with_scripted_choices(flow_file, capsys):
    code = main(["simulate", str(flow_file), "--choices", "1"])

    assert code == 0
    out = capsys.readouterr().out
    assert "CLERK: Need fuel?" in out
    assert "01  Fill it up" in out
    assert "SYSTEM: Drive safe." in out
    assert '"fueled": "yes"' in out
    # default initial memory from configuration
    assert '"honor_level": 55' in out


@pytest.mark.parametrize("choices", ["a", "1,x", "0", "-1"])
def test_simulate_rejects_bad_choices(flow_file, capsys, choices):
    with pytest.raises(SystemExit) as exc:
        main(["simulate", str(flow_file), f"--choices={choices}"])

    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_simulate_interactive_quit(flow_file, capsys, monkeypatch):
    monkeypatch.setattr("builtins.input", lambda prompt: "q")

    assert main(["simulate", str(flow_file)]) == 0

    assert "end of interaction" in capsys.readouterr().out


def test_simulate_uses_configured_memory(flow_file, tmp_path, capsys):
    (tmp_path / "configuration.json").write_text(
        json.dumps({"initial_memory": {"honor_level": 5}}), encoding="utf-8"
    )

    assert main(["simulate", str(flow_file), "--choices", "1"]) == 0

    out = capsys.readouterr().out
    assert "Need fuel?" not in out
    assert '"honor_level": 5' in out


def test_export_prints_envelope(flow_file, capsys):
    assert main(["export", str(flow_file)]) == 0

    exported = json.loads(capsys.readouterr().out)
    assert exported["project"]["id"] == "proj_cli"
    assert exported["meta"]["app"] == "RealCity Dialogue Architect v2.1"


def test_invalid_document(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text('{"project": {"id": 1}}', encoding="utf-8")

    assert main(["validate", str(path)]) == 2
    assert "Invalid project file" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main(["validate", str(tmp_path / "nope.json")]) == 2
    assert "Error" in capsys.readouterr().err
