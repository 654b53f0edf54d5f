"""Shared pytest fixtures for rewire tests."""

import pytest

from rewire.config import Config
from rewire.container import Container
from rewire.dependencies import DependenciesExtractor
from rewire.lock_mode import LockMode


@pytest.fixture()
def container() -> Container:
    """Default container with thread locking and circular detection."""
    return Container()


@pytest.fixture()
def container_no_lock() -> Container:
    """Container with LockMode.NONE."""
    return Container(lock_mode=LockMode.NONE)


@pytest.fixture()
def container_with_config() -> Container:
    """Container with a populated config store bound under ``"config"``."""
    container = Container()
    container.instance(
        "config",
        Config({"mail": {"from": "ops@example.com", "retries": 3}, "app.name": "rewire"}),
    )
    return container


@pytest.fixture()
def dependencies_extractor() -> DependenciesExtractor:
    """DependenciesExtractor instance."""
    return DependenciesExtractor()
