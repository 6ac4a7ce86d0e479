"""Shared fixtures for repartition tests."""

from pathlib import Path

import pytest

from factories import make_rule_set
from repartition.rules import load_rule_set


@pytest.fixture
def rule_set():
    return make_rule_set()


@pytest.fixture
def reference_rule_set():
    return load_rule_set(Path(__file__).parent.parent / "rules" / "reference.json")
