"""
Shared pytest fixtures and configuration for daostate tests.
"""

from __future__ import annotations

import os
from typing import Any

import pytest

from daostate.state.models import DaoGlobalState, DaoInvestorState
from daostate.state.snapshot import StateSnapshot
from tests.utils.factories import (
    create_global_snapshot,
    create_global_state,
    create_investor_state,
    create_local_snapshot,
)


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")


@pytest.fixture
def clean_daostate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep DAOSTATE_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("DAOSTATE_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def global_state() -> DaoGlobalState:
    return create_global_state()


@pytest.fixture
def investor_state() -> DaoInvestorState:
    return create_investor_state()


@pytest.fixture
def global_snapshot(global_state: DaoGlobalState) -> StateSnapshot:
    return create_global_snapshot(global_state)


@pytest.fixture
def local_snapshot(investor_state: DaoInvestorState) -> StateSnapshot:
    return create_local_snapshot(investor_state)
