"""
mockrs core module.

The replica set topology orchestrator and the pieces it is built from:
members, the request funnel, handshake synthesis and request matching.
"""

from .config import MockRSSettings
from .connection_string import render_hosts, render_uri
from .exceptions import (
    MemberNotStartedError,
    MemberStartError,
    MockRSError,
    TopologyStateError,
)
from .funnel import QueuedRequest, RequestFunnel
from .handshake import handshake_document, is_handshake_command
from .logging import configure_logging, module_levels
from .member import Member
from .roles import MemberRole
from .topology import ReplicaSetTopology

__all__ = [
    "Member",
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
    "is_handshake_command",
    "module_levels",
    "render_hosts",
    "render_uri",
]
