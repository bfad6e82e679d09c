"""
Role-blind shape checks for funneled requests.

Each check returns None when the request has the expected shape, otherwise a
short description of the first difference. Document comparisons are
structural, delegated to ``mockupdb.Matcher``: every key in the expected
document must be present with a matching value, extra keys are allowed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mockupdb import Command, Matcher, OpGetMore, OpKillCursors, OpMsg, OpQuery

from ..datastructures.type_aliases import (
    CursorId,
    DatabaseName,
    Document,
    Namespace,
    QueryFlags,
)
from .funnel import QueuedRequest


def document_matches(expected: Document | None, actual: Document | None) -> bool:
    """Structural match; ``expected=None`` matches anything."""
    if expected is None:
        return True
    return Matcher(dict(expected)).matches(dict(actual or {}))


def database_of(queued: QueuedRequest) -> DatabaseName | None:
    # Commands carry the bare database as their namespace.
    if is_command(queued):
        return queued.namespace
    if queued.namespace:
        return queued.namespace.partition(".")[0]
    return None


def is_command(queued: QueuedRequest) -> bool:
    """OP_MSG, or an OP_QUERY on ``db.$cmd`` (parsed by mockupdb as Command)."""
    return isinstance(queued.request, (OpMsg, Command))


def _differs(what: str, expected: Any, actual: Any) -> str:
    return f"expected {what} {expected!r}, got {actual!r}"


@dataclass(frozen=True, slots=True)
class QueryExpectation:
    """Expected shape of a legacy OP_QUERY."""

    namespace: Namespace
    flags: QueryFlags = 0
    skip: int = 0
    limit: int = 0
    query: Document | None = None
    fields: Document | None = None

    def mismatch(self, queued: QueuedRequest) -> str | None:
        request = queued.request
        if not isinstance(request, OpQuery) or is_command(queued):
            return _differs("an OP_QUERY", self.namespace, request)
        if request.namespace != self.namespace:
            return _differs("namespace", self.namespace, request.namespace)
        if (request.flags or 0) != self.flags:
            return _differs("flags", self.flags, request.flags)
        if request.num_to_skip != self.skip:
            return _differs("skip", self.skip, request.num_to_skip)
        if request.num_to_return != self.limit:
            return _differs("limit", self.limit, request.num_to_return)
        if not document_matches(self.query, request.doc):
            return _differs("query", self.query, request.doc)
        if self.fields is not None and not document_matches(
            self.fields, request.fields
        ):
            return _differs("fields", self.fields, request.fields)
        return None


@dataclass(frozen=True, slots=True)
class KillCursorsExpectation:
    """Expected OP_KILL_CURSORS.

    Only one cursor id per message is supported: a request carrying several
    ids never matches.
    """

    cursor_id: CursorId

    def mismatch(self, queued: QueuedRequest) -> str | None:
        request = queued.request
        if not isinstance(request, OpKillCursors):
            return _differs("an OP_KILL_CURSORS for cursor", self.cursor_id, request)
        cursor_ids = list(request.cursor_ids)
        if cursor_ids != [self.cursor_id]:
            return _differs("cursor ids", [self.cursor_id], cursor_ids)
        return None


@dataclass(frozen=True, slots=True)
class GetMoreExpectation:
    """Expected legacy OP_GET_MORE."""

    namespace: Namespace
    cursor_id: CursorId
    limit: int | None = None

    def mismatch(self, queued: QueuedRequest) -> str | None:
        request = queued.request
        if not isinstance(request, OpGetMore):
            return _differs("an OP_GET_MORE on", self.namespace, request)
        if request.namespace != self.namespace:
            return _differs("namespace", self.namespace, request.namespace)
        if request.cursor_id != self.cursor_id:
            return _differs("cursor id", self.cursor_id, request.cursor_id)
        if self.limit is not None and request.num_to_return != self.limit:
            return _differs("limit", self.limit, request.num_to_return)
        return None


@dataclass(frozen=True, slots=True)
class CommandExpectation:
    """Expected command, sent either as OP_QUERY on ``db.$cmd`` or as OP_MSG."""

    database: DatabaseName
    command: Mapping[str, Any]

    @property
    def command_name(self) -> str:
        if not self.command:
            raise ValueError("A command expectation needs a command document")
        return next(iter(self.command))

    def mismatch(self, queued: QueuedRequest) -> str | None:
        if not is_command(queued):
            return _differs("command", self.command_name, queued.request)
        actual_name = queued.command_name or ""
        if actual_name.lower() != self.command_name.lower():
            return _differs("command", self.command_name, actual_name)
        database = database_of(queued)
        if database != self.database:
            return _differs("database", self.database, database)

        # The name key may differ in case ("isMaster" vs "ismaster").
        expected = dict(self.command)
        actual = dict(queued.doc)
        expected_value = expected.pop(self.command_name)
        actual_value = actual.pop(next(iter(actual)), None)
        if not document_matches(
            {"value": expected_value}, {"value": actual_value}
        ) or not document_matches(expected, actual):
            return _differs("command document", dict(self.command), dict(queued.doc))
        return None
