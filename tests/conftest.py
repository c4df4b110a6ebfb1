from pathlib import Path

import pytest

EXAMPLES_DIR = Path(__file__).resolve().parent.parent / 'examples'


@pytest.fixture
def examples_dir() -> Path:
    return EXAMPLES_DIR


@pytest.fixture
def example_source():
    """Return a loader for the sample programs under examples/."""
    def load(name: str) -> str:
        with open(EXAMPLES_DIR / name, 'r', encoding='utf-8') as f:
            return f.read()
    return load
