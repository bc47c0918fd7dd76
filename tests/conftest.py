"""
Pytest Configuration and Fixtures for docconf Tests
====================================================

Purpose
-------
Shared fixtures for the docconf test suite: an isolated event bus, an
in-memory document store wired to it, memory-backed cache factories,
document references used across tests and the Redis testcontainer.

Architecture Notes
------------------
- Unit tests use an in-memory store and LocalCache (fast, isolated)
- Integration tests use testcontainers (real Redis)
- Every test gets its own EventBus, so listener identifiers never clash
"""

from __future__ import annotations

import os
from typing import Callable, Generator, List

import pytest
from testcontainers.redis import RedisContainer

from docconf.core.cache import CacheService
from docconf.core.config.config import Config
from docconf.core.event import EventBus
from docconf.core.logging.logger import get_logger
from docconf.domain.document import InMemoryDocumentStore
from docconf.domain.models.references import DocumentReference, LocalDocumentReference
from docconf.sources import DocumentConfigurationSource, StaticDomainConfigurationSource

logger = get_logger(__name__)

CONFIG_DOCUMENT = DocumentReference("xwiki", "Main", "Config")
CONFIG_CLASS = LocalDocumentReference("Main", "ConfigClass")
OTHER_CLASS = LocalDocumentReference("Main", "OtherClass")
STATIC_CACHE_ID = "configuration.document.test"

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure the test environment."""
    os.environ["DOCCONF_ENV"] = "testing"
    os.environ["DOCCONF_CACHE_BACKEND"] = "memory"
    os.environ["DOCCONF_LISTENER_TIMEOUT_SECONDS"] = "5"
    Config.load()


# ============================================================================
# CORE FIXTURES (Unit Tests)
# ============================================================================


@pytest.fixture
def bus() -> EventBus:
    """Fresh EventBus per test."""
    return EventBus(critical_timeout_seconds=5, high_timeout_seconds=5)


@pytest.fixture
def store(bus: EventBus) -> InMemoryDocumentStore:
    """In-memory document store publishing on the test bus."""
    return InMemoryDocumentStore(bus)


@pytest.fixture
def cache_service() -> CacheService:
    return CacheService("memory")


@pytest.fixture
def make_source(
    bus: EventBus,
    store: InMemoryDocumentStore,
    cache_service: CacheService,
) -> Generator[Callable[..., DocumentConfigurationSource], None, None]:
    """
    Factory building initialized sources; disposes them after the test.

    Usage:
        source = make_source()                       # static test domain
        source = make_source(WikiPreferencesConfigurationSource)
    """
    created: List[DocumentConfigurationSource] = []

    def factory(source_class=StaticDomainConfigurationSource, **kwargs):
        kwargs.setdefault("bus", bus)
        kwargs.setdefault("cache_factory", cache_service)
        if source_class is StaticDomainConfigurationSource:
            kwargs.setdefault("document", CONFIG_DOCUMENT)
            kwargs.setdefault("class_reference", CONFIG_CLASS)
            kwargs.setdefault("cache_id", STATIC_CACHE_ID)
        source = source_class(store, **kwargs)
        source.initialize()
        created.append(source)
        return source

    yield factory

    for source in created:
        source.dispose()


# ============================================================================
# TESTCONTAINERS FIXTURES (Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def redis_container() -> Generator[RedisContainer, None, None]:
    """
    Start Redis testcontainer for integration tests.

    Scope: session (container persists across all tests)
    """
    logger.info("Starting Redis testcontainer...")
    container = RedisContainer(image="redis:7-alpine")
    container.start()

    logger.info(
        "Redis testcontainer started: %s:%s",
        container.get_container_host_ip(),
        container.get_exposed_port(6379),
    )

    yield container

    logger.info("Stopping Redis testcontainer...")
    container.stop()


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def assert_domain_event_emitted(domain_model, event_name: str) -> bool:
    """
    Assert that a domain model emitted a specific event.

    Usage:
        document.put_record(CONFIG_CLASS, {"color": "blue"})
        assert assert_domain_event_emitted(document, "record.added")
    """
    events = domain_model.get_pending_events()
    return any(event.event_name == event_name for event in events)
