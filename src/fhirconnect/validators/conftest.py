"""
Shared fixtures for navigation tests.

Workspaces are built in tmp_path from inline YAML so every test controls
exactly which documents the scanner sees.
"""
from pathlib import Path
from textwrap import dedent
from typing import Dict

import pytest


class WorkspaceBuilder:
    """Writes mapping documents under a temporary workspace root."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, relative: str, content: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content).lstrip("\n"), encoding="utf-8")
        return path

    def write_all(self, files: Dict[str, str]) -> Dict[str, Path]:
        return {name: self.write(name, content) for name, content in files.items()}


@pytest.fixture
def workspace(tmp_path) -> WorkspaceBuilder:
    """Empty workspace rooted at tmp_path."""
    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def patient_workspace(workspace) -> WorkspaceBuilder:
    """
    a.yaml declares Patient, b.yaml references it as a slot archetype.
    """
    workspace.write("a.yaml", """
        metadata:
          name: "Patient"
    """)
    workspace.write("b.yaml", """
        slotArchetype: "Patient"
    """)
    return workspace
