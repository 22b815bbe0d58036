"""Shared fixtures for recordsim tests."""

from __future__ import annotations

import pytest

from recordsim import MockContainer, MockDatabase, Scope
from recordsim.core.config import reset_settings
from tests.fakes.factories import EventRecorder


@pytest.fixture(autouse=True)
def _reset_simulation() -> None:  # type: ignore[misc]
    """Every test starts from empty stores with no faults or account overrides."""
    reset_settings()
    MockContainer.reset_container()
    yield  # type: ignore[misc]
    MockContainer.reset_container()
    reset_settings()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def container() -> MockContainer:
    return MockContainer("tests")


@pytest.fixture
def private_db(container: MockContainer) -> MockDatabase:
    return container.database(Scope.PRIVATE)


@pytest.fixture
def public_db(container: MockContainer) -> MockDatabase:
    return container.database(Scope.PUBLIC)
