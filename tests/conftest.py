"""Pytest configuration and shared fixtures."""

from unittest.mock import Mock

import pytest

from eureka_sdk.domain.value_objects import BackoffPolicy
from eureka_sdk.infrastructure.config import EurekaSettings
from eureka_sdk.infrastructure.in_memory_metrics import InMemoryMetrics
from tests.builders import InstanceRecordBuilder
from tests.fakes import FakeRegistry, FixedClock


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.exception = Mock()
    return logger


@pytest.fixture
def metrics():
    return InMemoryMetrics()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def fake_registry():
    return FakeRegistry()


@pytest.fixture
def local_instance():
    """The instance registered by the client under test."""
    return InstanceRecordBuilder().with_service("ORDERS").with_id("10.0.0.1:orders:8080").build()


@pytest.fixture
def fast_settings():
    """Settings with millisecond timers so loops run quickly."""
    return EurekaSettings(
        heartbeat_interval_ms=10,
        registry_fetch_interval_ms=10,
        registration_retry_backoff=BackoffPolicy(base_ms=1, max_ms=5, jitter_factor=0.0),
        request_retry_delay_ms=1,
        shutdown_timeout_ms=500,
        heartbeat_failure_threshold=3,
    )
