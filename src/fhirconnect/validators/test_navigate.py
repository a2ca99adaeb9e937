"""
Navigation Command Tests
========================
End-to-end: click position -> candidates -> choice -> anchor -> sink.
"""
import json

import pytest

from fhirconnect.cli import main
from fhirconnect.commands.navigate import NavigateCommand, index_chooser
from fhirconnect.navigation.locator import Position
from fhirconnect.navigation.relationships import RelationshipCategory


@pytest.fixture
def command(patient_workspace):
    return NavigateCommand(repo_root=patient_workspace.root, config={})


@pytest.mark.navigation
def test_navigate_from_declaration_to_usage(command, patient_workspace):
    """
    Given: a.yaml declares Patient, b.yaml uses it
    When: Clicking the name value in a.yaml
    Then: The sink receives b.yaml at the slotArchetype value
    """
    received = []
    target = command.navigate(patient_workspace.root / "a.yaml", 1, 10, sink=received.append)

    assert target is not None
    assert target.path.name == "b.yaml"
    assert target.position == Position(0, 16)
    assert target.category is RelationshipCategory.SLOT_ARCHETYPE
    assert received == [target]


@pytest.mark.navigation
def test_navigate_from_usage_to_declaration(command, patient_workspace):
    target = command.navigate(patient_workspace.root / "b.yaml", 0, 18)

    assert target.path.name == "a.yaml"
    assert target.position == Position(1, 9)
    assert target.to_dict()["line"] == 2


@pytest.mark.navigation
def test_multiple_candidates_go_through_chooser(command, patient_workspace):
    patient_workspace.write("c.yaml", "slotArchetype: Patient\n")
    offered = []

    def choose(candidates):
        offered.extend(c.display_name for c in candidates)
        return candidates[1]

    target = command.navigate(patient_workspace.root / "a.yaml", 1, 10, chooser=choose)

    assert offered == ["b.yaml", "c.yaml"]
    assert target.path.name == "c.yaml"


@pytest.mark.navigation
def test_multiple_candidates_without_chooser_do_nothing(command, patient_workspace):
    patient_workspace.write("c.yaml", "slotArchetype: Patient\n")
    received = []

    assert command.navigate(patient_workspace.root / "a.yaml", 1, 10, sink=received.append) is None
    assert received == []


@pytest.mark.navigation
def test_index_chooser_out_of_range(command, patient_workspace):
    patient_workspace.write("c.yaml", "slotArchetype: Patient\n")

    assert command.navigate(patient_workspace.root / "a.yaml", 1, 10, chooser=index_chooser(5)) is None


@pytest.mark.navigation
def test_non_navigable_clicks_do_nothing(command, patient_workspace):
    patient_workspace.write("broken.yaml", "a: [1, 2\nb: }\n")

    assert command.navigate(patient_workspace.root / "a.yaml", 0, 2) is None
    assert command.navigate(patient_workspace.root / "broken.yaml", 0, 1) is None
    assert command.navigate(patient_workspace.root / "missing.yaml", 0, 0) is None


@pytest.mark.navigation
def test_cli_goto_prints_destination(patient_workspace, capsys):
    root = patient_workspace.root

    exit_code = main(["--repo", str(root), "goto", str(root / "a.yaml"), "2", "11"])

    out = capsys.readouterr().out.strip()
    assert exit_code == 0
    assert out == f"{root / 'b.yaml'}:1:17"


@pytest.mark.navigation
def test_cli_goto_json_with_pick(patient_workspace, capsys):
    root = patient_workspace.root
    patient_workspace.write("c.yaml", "slotArchetype: Patient\n")

    exit_code = main([
        "--repo", str(root), "goto", str(root / "a.yaml"), "2", "11", "--pick", "2", "--format", "json",
    ])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert data["path"].endswith("c.yaml")
    assert data["line"] == 1
    assert data["column"] == 16


@pytest.mark.navigation
def test_cli_goto_miss_exits_nonzero(patient_workspace, capsys):
    root = patient_workspace.root

    assert main(["--repo", str(root), "goto", str(root / "a.yaml"), "1", "1"]) == 1
    assert "No destination found" in capsys.readouterr().out


@pytest.mark.navigation
def test_cli_candidates_json(patient_workspace, capsys):
    root = patient_workspace.root

    exit_code = main(["--repo", str(root), "candidates", "-", "Patient", "-c", "slotArchetype", "-f", "json"])

    data = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [entry["category"] for entry in data] == ["metadata.name"]
    assert data[0]["anchor"] == {"line": 2, "column": 10}


@pytest.mark.navigation
def test_cli_scan_and_keys(patient_workspace, capsys):
    root = patient_workspace.root
    patient_workspace.write("build/out.yaml", "a: 1\n")

    assert main(["--repo", str(root), "scan", "--format", "json"]) == 0
    paths = json.loads(capsys.readouterr().out)
    assert [p.rsplit("/", 1)[-1] for p in paths] == ["a.yaml", "b.yaml"]

    assert main(["--repo", str(root), "keys"]) == 0
    assert "metadata.name" in capsys.readouterr().out


@pytest.mark.navigation
def test_cli_goto_without_repo_scans_sibling_folders(workspace, monkeypatch, capsys):
    """
    Given: A project without a .fhirconnect marker, run from its root
    When: Navigating from models/a.yaml without --repo
    Then: The usage in contexts/c.yaml is found
    """
    workspace.write("models/a.yaml", """
        metadata:
          name: "Patient"
    """)
    workspace.write("contexts/c.yaml", """
        slotArchetype: "Patient"
    """)
    monkeypatch.chdir(workspace.root)

    exit_code = main(["goto", "models/a.yaml", "2", "11"])

    out = capsys.readouterr().out.strip()
    assert exit_code == 0
    assert out.endswith("contexts/c.yaml:1:17")
