"""Pytest fixtures for mockrs tests.

Every topology created through ``topology_factory`` is destroyed when the test
ends, whether it passed or not, so no member threads or sockets outlive it.
"""

from collections.abc import Callable, Iterator

import pytest
from loguru import logger

from mockrs.core.config import MockRSSettings
from mockrs.core.topology import ReplicaSetTopology

type TopologyFactory = Callable[..., ReplicaSetTopology]


@pytest.fixture
def topology_factory() -> Iterator[TopologyFactory]:
    """Factory for running topologies with automatic teardown.

    Example Usage:
        def test_example(topology_factory):
            rs = topology_factory(secondaries=2, arbiters=1)
            assert len(rs.members) == 4
    """
    running: list[ReplicaSetTopology] = []

    def _create(
        max_wire_version: int = 6,
        secondaries: int = 0,
        arbiters: int = 0,
        **settings_kwargs: object,
    ) -> ReplicaSetTopology:
        topology = ReplicaSetTopology(
            max_wire_version,
            secondaries,
            arbiters,
            settings=MockRSSettings(**settings_kwargs),
        )
        topology.run()
        running.append(topology)
        return topology

    yield _create

    for topology in running:
        topology.destroy()


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collects every loguru message emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
        format="{message}",
    )
    yield messages
    logger.remove(handler_id)
