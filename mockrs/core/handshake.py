"""
Handshake ("is-primary") response synthesis.

Every member answers ``isMaster``/``ismaster``/``hello`` itself so the client's
topology discovery never reaches the funnel. The document a member sends is a
pure function of its role, the full member list and the configured maximum
wire version:

    role       ismaster  secondary  arbiterOnly
    PRIMARY    true      false      -
    SECONDARY  false     true       -
    ARBITER    true      -          true

Arbiters keep ``ismaster: true`` next to ``arbiterOnly: true``. Drivers are
tested against what servers historically sent, so the combination is kept
as is.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..datastructures.type_aliases import (
    CommandName,
    HandshakeDocument,
    HostAndPort,
    ReplicaSetName,
    WireVersion,
)
from .roles import MemberRole

LEGACY_HANDSHAKE_COMMAND = "ismaster"
HELLO_COMMAND = "hello"

# Lower-cased; drivers send both "isMaster" and "ismaster".
HANDSHAKE_COMMANDS = frozenset({LEGACY_HANDSHAKE_COMMAND, HELLO_COMMAND})

DEFAULT_SET_NAME: ReplicaSetName = "rs"


def is_handshake_command(command_name: CommandName | None) -> bool:
    return bool(command_name) and command_name.lower() in HANDSHAKE_COMMANDS


def primary_field_name(command_name: CommandName = LEGACY_HANDSHAKE_COMMAND) -> str:
    """Name of the "is primary" bit in the reply to ``command_name``."""
    if command_name.lower() == HELLO_COMMAND:
        return "isWritablePrimary"
    return "ismaster"


def handshake_document(
    role: MemberRole,
    hosts: Sequence[HostAndPort],
    max_wire_version: WireVersion,
    *,
    set_name: ReplicaSetName = DEFAULT_SET_NAME,
    command_name: CommandName = LEGACY_HANDSHAKE_COMMAND,
) -> HandshakeDocument:
    """Build the handshake reply a member in ``role`` sends.

    Args:
        role: Role of the answering member.
        hosts: Every member's "host:port", primary first, arbiters included.
        max_wire_version: Wire version the simulated servers claim.
        set_name: Replica set name.
        command_name: The handshake command being answered; ``hello`` replies
            carry ``isWritablePrimary`` instead of ``ismaster``.
    """
    primary_field = primary_field_name(command_name)
    document: HandshakeDocument = {"ok": 1}

    if role is MemberRole.PRIMARY:
        document[primary_field] = True
        document["secondary"] = False
    elif role is MemberRole.SECONDARY:
        document[primary_field] = False
        document["secondary"] = True
    elif role is MemberRole.ARBITER:
        document[primary_field] = True
        document["arbiterOnly"] = True
    else:
        raise ValueError(f"Unknown member role: {role!r}")

    document["maxWireVersion"] = max_wire_version
    document["setName"] = set_name
    document["hosts"] = list(hosts)
    return document
