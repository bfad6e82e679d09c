"""
mockrs datastructures.

Small immutable values shared by the topology orchestrator and its tests:
- MemberAddress: the bound host and port of one simulated member
- type_aliases: semantic names for raw wire and network types
"""

from __future__ import annotations

from .member_address import (
    MemberAddress,
    member_address_strategy,
    unique_member_addresses_strategy,
)

__all__ = [
    "MemberAddress",
    "member_address_strategy",
    "unique_member_addresses_strategy",
]
