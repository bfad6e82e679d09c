"""
Minimal legacy wire-protocol client for tests.

Modern drivers no longer send OP_QUERY, OP_GET_MORE or OP_KILL_CURSORS, so
tests that exercise those paths build the messages by hand with ``bson``.
OP_MSG is supported only with a single body section.
"""

import itertools
import socket
import struct
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

import bson

from mockrs.datastructures.member_address import MemberAddress

OP_REPLY = 1
OP_QUERY = 2004
OP_GET_MORE = 2005
OP_KILL_CURSORS = 2007
OP_MSG = 2013

HEADER = struct.Struct("<iiii")
REPLY_PREFIX = struct.Struct("<iqii")

# Generous wait for requests crossing a real socket and a server thread.
WIRE_TIMEOUT = 5.0

_request_ids = itertools.count(1)


@dataclass(frozen=True, slots=True)
class WireReply:
    """Decoded OP_REPLY."""

    response_to: int
    flags: int
    cursor_id: int
    starting_from: int
    number_returned: int
    documents: list[dict[str, Any]] = field(default_factory=list)


def _cstring(value: str) -> bytes:
    return value.encode("utf-8") + b"\x00"


def _message(op_code: int, body: bytes) -> tuple[int, bytes]:
    request_id = next(_request_ids)
    header = HEADER.pack(HEADER.size + len(body), request_id, 0, op_code)
    return request_id, header + body


def op_query(
    namespace: str,
    query: Mapping[str, Any],
    *,
    flags: int = 0,
    skip: int = 0,
    limit: int = 0,
    fields: Mapping[str, Any] | None = None,
) -> tuple[int, bytes]:
    body = (
        struct.pack("<i", flags)
        + _cstring(namespace)
        + struct.pack("<ii", skip, limit)
        + bson.encode(dict(query))
    )
    if fields is not None:
        body += bson.encode(dict(fields))
    return _message(OP_QUERY, body)


def op_get_more(namespace: str, cursor_id: int, limit: int = 0) -> tuple[int, bytes]:
    body = (
        struct.pack("<i", 0)
        + _cstring(namespace)
        + struct.pack("<iq", limit, cursor_id)
    )
    return _message(OP_GET_MORE, body)


def op_kill_cursors(cursor_ids: Sequence[int]) -> tuple[int, bytes]:
    body = struct.pack("<ii", 0, len(cursor_ids)) + b"".join(
        struct.pack("<q", cursor_id) for cursor_id in cursor_ids
    )
    return _message(OP_KILL_CURSORS, body)


def op_msg(database: str, command: Mapping[str, Any]) -> tuple[int, bytes]:
    body = struct.pack("<IB", 0, 0) + bson.encode({**command, "$db": database})
    return _message(OP_MSG, body)


class WireClient:
    """One blocking connection to a member."""

    def __init__(
        self, address: MemberAddress, timeout: float = WIRE_TIMEOUT
    ) -> None:
        self.address = address
        self._sock = socket.create_connection(
            (address.host, address.port), timeout=timeout
        )

    def send(self, message: tuple[int, bytes]) -> int:
        request_id, data = message
        self._sock.sendall(data)
        return request_id

    def _recv_exactly(self, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._sock.recv(size - len(chunks))
            if not chunk:
                raise ConnectionError(f"connection to {self.address} closed")
            chunks.extend(chunk)
        return bytes(chunks)

    def _read_message(self, expected_op_code: int) -> tuple[int, bytes]:
        length, _, response_to, op_code = HEADER.unpack(
            self._recv_exactly(HEADER.size)
        )
        body = self._recv_exactly(length - HEADER.size)
        if op_code != expected_op_code:
            raise AssertionError(
                f"expected opcode {expected_op_code}, got opcode {op_code}"
            )
        return response_to, body

    def read_reply(self) -> WireReply:
        response_to, body = self._read_message(OP_REPLY)
        flags, cursor_id, starting_from, number_returned = REPLY_PREFIX.unpack_from(
            body
        )
        documents = bson.decode_all(body[REPLY_PREFIX.size :])
        return WireReply(
            response_to=response_to,
            flags=flags,
            cursor_id=cursor_id,
            starting_from=starting_from,
            number_returned=number_returned,
            documents=documents,
        )

    def command(self, database: str, command: Mapping[str, Any]) -> dict[str, Any]:
        """Run a command over OP_QUERY and return the reply document."""
        self.send(op_query(f"{database}.$cmd", command, limit=-1))
        reply = self.read_reply()
        return reply.documents[0]

    def read_msg_reply(self) -> dict[str, Any]:
        """Read an OP_MSG reply and return its body document."""
        _, body = self._read_message(OP_MSG)
        return bson.decode(body[5:])

    def close(self) -> None:
        self._sock.close()


@contextmanager
def wire_client(
    address: MemberAddress, timeout: float = WIRE_TIMEOUT
) -> Iterator[WireClient]:
    client = WireClient(address, timeout)
    try:
        yield client
    finally:
        client.close()
