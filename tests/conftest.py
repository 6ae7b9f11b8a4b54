"""Root test configuration."""

import logging

import pytest
import structlog

from meshgraph.graph import DependencyGraphStore, Node
from meshgraph.snapshots import InMemorySnapshotStore


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = 1_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1_000) -> int:
        self.now += ms
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemorySnapshotStore(clock=clock)


@pytest.fixture
def graph_store():
    return DependencyGraphStore()


@pytest.fixture
def mesh_store():
    """Store for a small mesh: frontend -> orders -> payments, orders -> inventory."""
    store = DependencyGraphStore()
    frontend = Node("frontend", {"web", "bff"}, {"web->bff"})
    orders = Node("orders", {"order-api"})
    payments = Node("payments", {"pay-api"})
    inventory = Node("inventory", {"stock-api"})
    for node in (frontend, orders, payments, inventory):
        store.add_node(node)
    store.add_link(frontend, orders, "bff->order-api")
    store.add_link(orders, payments, "order-api->pay-api")
    store.add_link(orders, inventory, "order-api->stock-api")
    return store
