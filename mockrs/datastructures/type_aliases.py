"""
Semantic type aliases for mockrs datastructures.

These aliases make signatures across the topology, member and funnel modules
self-documenting by naming what a raw str, int or float actually carries.
"""

from collections.abc import Mapping
from typing import Any

# Time types
type DurationSeconds = float
type MonotonicTimestamp = float

# Network types
type HostAddress = str
type PortNumber = int
type HostAndPort = str  # "host:port"
type ConnectionString = str  # mongodb://host:port,.../?replicaSet=rs
type ReplicaSetName = str

# Wire protocol types
type WireVersion = int
type CursorId = int
type QueryFlags = int
type ReplyFlags = int
type Namespace = str  # "database.collection"
type DatabaseName = str
type CommandName = str

# Document types
type Document = Mapping[str, Any]
type HandshakeDocument = dict[str, Any]
