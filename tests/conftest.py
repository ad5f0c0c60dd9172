from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable Rojo/Wally project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)
