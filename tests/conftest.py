"""Root test configuration: session-level cleanup of runtime artifacts"""

import shutil
from pathlib import Path

import pytest


_PROJECT_ROOT = Path(__file__).parent.parent

_CLEANUP_DIRS = ["dist"]


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove output directories created by CLI runs during the test session."""
    existing = {name for name in _CLEANUP_DIRS if (_PROJECT_ROOT / name).exists()}
    yield
    for name in _CLEANUP_DIRS:
        p = _PROJECT_ROOT / name
        if name not in existing and p.exists():
            shutil.rmtree(p)
