"""
mockrs - a mock MongoDB replica set for driver tests

Starts one primary plus any number of secondaries and arbiters, each a
MockupDB server on its own port, and presents them to a client under test as
one replica set behind a single connection string. Handshakes are answered by
each member; every other request is funneled into one queue the test pops
from, whichever member received it.

## Quick Start

```python
from mockrs import ReplicaSetTopology

with ReplicaSetTopology(max_wire_version=6, secondaries=2, arbiters=1) as rs:
    # point the client under test at rs.uri, then:
    request = rs.receives_query("db.coll", query={"x": 1})
    rs.replies(request, documents=[{"x": 1}])
```
"""

from .core import (
    Member,
    MemberNotStartedError,
    MemberRole,
    MemberStartError,
    MockRSError,
    MockRSSettings,
    QueuedRequest,
    ReplicaSetTopology,
    RequestFunnel,
    TopologyStateError,
    configure_logging,
    handshake_document,
)
from .datastructures import MemberAddress

__version__ = "0.1.0"

__all__ = [
    "Member",
    "MemberAddress",
    "MemberNotStartedError",
    "MemberRole",
    "MemberStartError",
    "MockRSError",
    "MockRSSettings",
    "QueuedRequest",
    "ReplicaSetTopology",
    "RequestFunnel",
    "TopologyStateError",
    "configure_logging",
    "handshake_document",
]
