"""
Cross-member request funnel.

Every member hands the requests it does not answer itself to one shared
funnel, so test code can consume client traffic without choosing which member
to listen to. Members push from their own connection threads; the test thread
pops with a timeout.
"""

from __future__ import annotations

import queue
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger
from mockupdb import OpReply, Request

from ..datastructures.type_aliases import (
    CommandName,
    CursorId,
    DurationSeconds,
    MonotonicTimestamp,
    Namespace,
    ReplyFlags,
)

if TYPE_CHECKING:
    from .member import Member

funnel_log = logger


@dataclass(slots=True)
class QueuedRequest:
    """One client request that no member autoresponder answered.

    Wraps the parsed ``mockupdb`` request (which owns the originating client
    connection) together with the member that received it.
    """

    request: Request
    member: Member
    received_at: MonotonicTimestamp = field(default_factory=time.monotonic)

    @property
    def namespace(self) -> Namespace | None:
        return self.request.namespace

    @property
    def flags(self) -> int | None:
        return self.request.flags

    @property
    def doc(self) -> Mapping[str, Any]:
        return self.request.doc

    @property
    def docs(self) -> list[Mapping[str, Any]]:
        return list(self.request.docs)

    @property
    def command_name(self) -> CommandName | None:
        return getattr(self.request, "command_name", None)

    @property
    def client_port(self) -> int | None:
        return self.request.client_port

    def replies(
        self,
        *,
        flags: ReplyFlags = 0,
        cursor_id: CursorId = 0,
        starting_from: int = 0,
        documents: Iterable[Mapping[str, Any]] = (),
    ) -> None:
        """Send an OP_REPLY back over the connection this request came from."""
        reply = OpReply(
            list(documents),
            flags=flags,
            cursor_id=cursor_id,
            starting_from=starting_from,
        )
        self.request.reply(reply)

    def replies_to_command(self, document: Mapping[str, Any]) -> None:
        """Answer with the reply type matching the request's opcode."""
        self.request.reply(dict(document))

    def __repr__(self) -> str:
        return f"QueuedRequest({self.request!r} via {self.member.role.value})"


class RequestFunnel:
    """Thread-safe FIFO of requests funneled from every member."""

    def __init__(self) -> None:
        self._queue: queue.Queue[QueuedRequest] = queue.Queue()

    def push(self, queued: QueuedRequest) -> None:
        self._queue.put(queued)

    def pop(self, timeout: DurationSeconds) -> QueuedRequest | None:
        """Pop the oldest request, waiting up to ``timeout`` seconds.

        Returns None when nothing arrived in time.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> int:
        """Discard every queued request, returning how many were dropped."""
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
            dropped += 1

        if dropped:
            funnel_log.debug("Dropped {} unconsumed funneled requests", dropped)
        return dropped

    def __len__(self) -> int:
        return self._queue.qsize()
