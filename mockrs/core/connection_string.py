"""Rendering of the hosts literal and connection URI shared by all members."""

from __future__ import annotations

from collections.abc import Iterable

from ..datastructures.member_address import MemberAddress
from ..datastructures.type_aliases import ConnectionString, ReplicaSetName

URI_SCHEME = "mongodb://"


def render_hosts(addresses: Iterable[MemberAddress]) -> str:
    """A string like ``"localhost:1", "localhost:2", "localhost:3"``."""
    return ", ".join(f'"{address.host_and_port}"' for address in addresses)


def render_uri(
    addresses: Iterable[MemberAddress], set_name: ReplicaSetName = "rs"
) -> ConnectionString:
    """A string like ``mongodb://localhost:1,localhost:2/?replicaSet=rs``."""
    seeds = ",".join(address.host_and_port for address in addresses)
    if not seeds:
        raise ValueError("A connection string needs at least one member address")
    return f"{URI_SCHEME}{seeds}/?replicaSet={set_name}"
