"""
Replica set topology orchestrator.

A ``ReplicaSetTopology`` starts one primary plus any number of secondaries and
arbiters, each listening on its own OS-assigned port, and makes them look like
one replica set to a client under test:

- every member answers handshakes itself, advertising the full member list;
- every other request, whichever member receives it, lands in one shared
  funnel the test thread pops from.

Typical use:

    with ReplicaSetTopology(max_wire_version=6, secondaries=2) as rs:
        future = executor.submit(run_client_find, rs.uri)
        request = rs.receives_query("db.coll", query={"x": 1})
        assert request is not None
        rs.replies(request, documents=[{"x": 1}])

There is no ordering guarantee across members: two members receiving requests
at the same time funnel them in whatever order their threads interleave.
Requests reaching a single member keep that member's order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any, Protocol

from loguru import logger

from ..datastructures.type_aliases import (
    CommandName,
    ConnectionString,
    CursorId,
    DatabaseName,
    Document,
    DurationSeconds,
    HandshakeDocument,
    Namespace,
    QueryFlags,
    ReplyFlags,
    WireVersion,
)
from .config import MockRSSettings
from .connection_string import render_hosts, render_uri
from .exceptions import MemberStartError, TopologyStateError
from .funnel import QueuedRequest, RequestFunnel
from .handshake import handshake_document
from .matching import (
    CommandExpectation,
    GetMoreExpectation,
    KillCursorsExpectation,
    QueryExpectation,
)
from .member import HandshakeFactory, Member
from .roles import MemberRole

topology_log = logger


class RequestExpectation(Protocol):
    def mismatch(self, queued: QueuedRequest) -> str | None: ...


class ReplicaSetTopology:
    """A primary, ``secondaries`` secondaries and ``arbiters`` arbiters.

    Members only exist between ``run()`` and ``destroy()``; so do ``hosts_str``
    and ``uri``, which are None before ``run()``. The role accessors
    (``primary``, ``secondaries``, ``arbiters``) raise ``TopologyStateError``
    outside that window, while ``members`` is simply empty.
    """

    def __init__(
        self,
        max_wire_version: WireVersion,
        secondaries: int = 0,
        arbiters: int = 0,
        *,
        settings: MockRSSettings | None = None,
    ) -> None:
        if secondaries < 0:
            raise ValueError(f"secondaries must be >= 0, got {secondaries}")
        if arbiters < 0:
            raise ValueError(f"arbiters must be >= 0, got {arbiters}")

        self.settings = settings if settings is not None else MockRSSettings()
        self.max_wire_version = max_wire_version
        self.n_secondaries = secondaries
        self.n_arbiters = arbiters

        self._members: list[Member] = []
        self._hosts_str: str | None = None
        self._uri: ConnectionString | None = None
        self._funnel = RequestFunnel()
        self._verbose = self.settings.verbose
        self._ran = False
        self._destroyed = False

    @property
    def member_count(self) -> int:
        return 1 + self.n_secondaries + self.n_arbiters

    @property
    def members(self) -> tuple[Member, ...]:
        """Primary, then secondaries, then arbiters."""
        return tuple(self._members)

    @property
    def primary(self) -> Member:
        self._require_running()
        return self._members[0]

    @property
    def secondaries(self) -> tuple[Member, ...]:
        return self._with_role(MemberRole.SECONDARY)

    @property
    def arbiters(self) -> tuple[Member, ...]:
        return self._with_role(MemberRole.ARBITER)

    @property
    def hosts_str(self) -> str | None:
        """``"host:port", "host:port", ...`` for every member, or None before run."""
        return self._hosts_str

    @property
    def uri(self) -> ConnectionString | None:
        """``mongodb://host:port,.../?replicaSet=rs``, or None before run."""
        return self._uri

    @property
    def verbose(self) -> bool:
        return self._verbose

    @property
    def pending_requests(self) -> int:
        """Funneled requests nobody has popped yet."""
        return len(self._funnel)

    def handshake_for(
        self, member: Member, command_name: CommandName = "ismaster"
    ) -> HandshakeDocument:
        return member.handshake(command_name)

    def _with_role(self, role: MemberRole) -> tuple[Member, ...]:
        self._require_running()
        return tuple(member for member in self._members if member.role is role)

    def set_verbose(self, verbose: bool) -> None:
        """Log funneled requests at INFO on every member."""
        self._verbose = verbose
        for member in self._members:
            member.set_verbose(verbose)

    def run(self) -> ConnectionString:
        """Start every member, then install funnel and handshake responders.

        Returns the connection URI.
        """
        if self._ran:
            raise TopologyStateError("run() may only be called once per topology")
        self._ran = True

        started: list[Member] = []
        try:
            primary = self._start_member(MemberRole.PRIMARY, started)
            secondaries = [
                self._start_member(MemberRole.SECONDARY, started)
                for _ in range(self.n_secondaries)
            ]
            arbiters = [
                self._start_member(MemberRole.ARBITER, started)
                for _ in range(self.n_arbiters)
            ]
        except MemberStartError:
            for member in started:
                member.stop()
            raise

        self._members = [primary, *secondaries, *arbiters]

        # Registered first so it runs last, after the handshake responder.
        for member in self._members:
            member.funnel_into(self._funnel)

        # Every port is known now.
        addresses = [member.address for member in self._members]
        self._hosts_str = render_hosts(addresses)
        self._uri = render_uri(addresses, self.settings.set_name)

        hosts = [address.host_and_port for address in addresses]
        for member in self._members:
            member.install_handshake(self._handshake_factory(member.role, hosts))

        for member in self._members:
            member.set_verbose(self._verbose)

        topology_log.info(
            "Replica set {} running with {} members: {}",
            self.settings.set_name,
            len(self._members),
            self._uri,
        )
        return self._uri

    def _start_member(self, role: MemberRole, started: list[Member]) -> Member:
        member = Member(role, verbose=self._verbose)
        member.start()
        started.append(member)
        return member

    def _handshake_factory(
        self, role: MemberRole, hosts: list[str]
    ) -> HandshakeFactory:
        def _document(command_name: CommandName) -> HandshakeDocument:
            return handshake_document(
                role,
                hosts,
                self.max_wire_version,
                set_name=self.settings.set_name,
                command_name=command_name,
            )

        return _document

    def destroy(self) -> None:
        """Stop every member and drop unconsumed requests."""
        if not self._ran:
            raise TopologyStateError("destroy() called before run()")
        if self._destroyed:
            raise TopologyStateError("destroy() may only be called once")
        self._destroyed = True

        for member in self._members:
            member.stop()
        self._members = []
        self._hosts_str = None
        self._uri = None
        self._funnel.drain()
        topology_log.debug("Replica set {} destroyed", self.settings.set_name)

    def _require_running(self) -> None:
        if not self._ran or self._destroyed:
            raise TopologyStateError("topology is not running")

    def __enter__(self) -> ReplicaSetTopology:
        self.run()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.destroy()

    def _receives(
        self,
        expectation: RequestExpectation,
        timeout: DurationSeconds | None,
    ) -> QueuedRequest | None:
        wait = self.settings.request_timeout if timeout is None else timeout
        queued = self._funnel.pop(wait)
        if queued is None:
            topology_log.warning(
                "Expected {!r}, got nothing after {:.3f}s", expectation, wait
            )
            return None

        reason = expectation.mismatch(queued)
        if reason is not None:
            # Nobody else holds the request; dropping it here releases it.
            topology_log.warning(
                "Request to {} does not match: {}", queued.member, reason
            )
            return None
        return queued

    def receives(
        self, *, timeout: DurationSeconds | None = None
    ) -> QueuedRequest | None:
        """Pop the next funneled request whatever its shape, or None on timeout."""
        wait = self.settings.request_timeout if timeout is None else timeout
        return self._funnel.pop(wait)

    def receives_query(
        self,
        namespace: Namespace,
        flags: QueryFlags = 0,
        skip: int = 0,
        limit: int = 0,
        query: Document | None = None,
        fields: Document | None = None,
        *,
        timeout: DurationSeconds | None = None,
    ) -> QueuedRequest | None:
        """Pop the next request and check it is a matching OP_QUERY.

        Waits up to ``timeout`` (default ``settings.request_timeout``) for a
        request. Returns None, after logging why, when nothing arrives or the
        request has another shape.
        """
        return self._receives(
            QueryExpectation(
                namespace=namespace,
                flags=flags,
                skip=skip,
                limit=limit,
                query=query,
                fields=fields,
            ),
            timeout,
        )

    def receives_kill_cursors(
        self, cursor_id: CursorId, *, timeout: DurationSeconds | None = None
    ) -> QueuedRequest | None:
        """Pop the next request and check it kills exactly ``cursor_id``.

        OP_KILL_CURSORS may carry several ids; only single-id messages match.
        """
        return self._receives(KillCursorsExpectation(cursor_id=cursor_id), timeout)

    def receives_getmore(
        self,
        namespace: Namespace,
        cursor_id: CursorId,
        limit: int | None = None,
        *,
        timeout: DurationSeconds | None = None,
    ) -> QueuedRequest | None:
        return self._receives(
            GetMoreExpectation(namespace=namespace, cursor_id=cursor_id, limit=limit),
            timeout,
        )

    def receives_command(
        self,
        database: DatabaseName,
        command: Mapping[str, Any],
        *,
        timeout: DurationSeconds | None = None,
    ) -> QueuedRequest | None:
        """Pop the next request and check it is ``command`` run on ``database``."""
        return self._receives(
            CommandExpectation(database=database, command=command), timeout
        )

    @staticmethod
    def replies(
        request: QueuedRequest,
        flags: ReplyFlags = 0,
        cursor_id: CursorId = 0,
        starting_from: int = 0,
        number_returned: int | None = None,
        documents: Iterable[Document] = (),
    ) -> None:
        """Send an OP_REPLY to whichever member connection ``request`` came from."""
        batch = list(documents)
        if number_returned is not None and number_returned != len(batch):
            raise ValueError(
                f"number_returned is {number_returned} but {len(batch)} documents given"
            )
        request.replies(
            flags=flags,
            cursor_id=cursor_id,
            starting_from=starting_from,
            documents=batch,
        )

    @staticmethod
    def replies_to_command(request: QueuedRequest, document: Document) -> None:
        request.replies_to_command(document)

    def __repr__(self) -> str:
        state = self._uri if self._uri is not None else "not running"
        return (
            f"ReplicaSetTopology(secondaries={self.n_secondaries}, "
            f"arbiters={self.n_arbiters}, {state})"
        )
