"""Pytest configuration and shared fixtures."""

import pytest

from ghoodoo.config.settings import OdooConfig, StageConfig
from tests.fakes import InMemoryTaskClient, RecordingNotifier


@pytest.fixture
def stages() -> StageConfig:
    """Stage configuration with all three targets set."""
    return StageConfig(done=5, in_progress=2, canceled=6)


@pytest.fixture
def task_client(stages: StageConfig) -> InMemoryTaskClient:
    """Fake task client holding tasks 123, 456 and 789."""
    return InMemoryTaskClient(task_ids=[123, 456, 789], stages=stages)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def odoo_config() -> OdooConfig:
    """Odoo configuration without username (static uid 2)."""
    return OdooConfig(
        url="https://odoo.example.com/",
        database="testdb",
        api_key="test-api-key",
        stages=StageConfig(done=5, in_progress="In Progress"),
    )

