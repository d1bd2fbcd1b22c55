"""
Shared fixtures for integration tests.
"""

import pytest
from pathlib import Path


@pytest.fixture
def examples_dir():
    """Directory holding the example trials and their configuration files."""
    return Path(__file__).parent.parent.parent / "examples"


@pytest.fixture
def logic_cases():
    """The 4 input combinations of a two operand logic gate."""
    return [(0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)]
