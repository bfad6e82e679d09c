"""
One simulated replica-set member.

A member is a ``mockupdb.MockupDB`` server tagged with the role it plays. The
server owns the socket accept loop, wire-protocol parsing and reply
transmission; this module only adds the role, the verbosity flag and the two
responders every member carries (the funnel catch-all and the handshake).
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger
from mockupdb import MockupDB, Request

from ..datastructures.member_address import MemberAddress
from ..datastructures.type_aliases import CommandName, HandshakeDocument
from .exceptions import MemberNotStartedError, MemberStartError
from .funnel import QueuedRequest, RequestFunnel
from .handshake import is_handshake_command
from .roles import MemberRole

member_log = logger

type RequestHandler = Callable[[Request], bool]
type HandshakeFactory = Callable[[CommandName], HandshakeDocument]


class Member:
    """A simulated node with an immutable role."""

    def __init__(self, role: MemberRole, *, verbose: bool = False) -> None:
        self._role = role
        self._verbose = verbose
        self._server: MockupDB | None = None
        self._address: MemberAddress | None = None
        self._handshake_factory: HandshakeFactory | None = None

    @property
    def role(self) -> MemberRole:
        return self._role

    @property
    def verbose(self) -> bool:
        return self._verbose

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def address(self) -> MemberAddress:
        """Bound address; only known once the member has started."""
        if self._address is None:
            raise MemberNotStartedError(
                f"{self._role.value} member has no address before start()"
            )
        return self._address

    @property
    def host_and_port(self) -> str:
        return self.address.host_and_port

    def start(self) -> MemberAddress:
        """Bind an OS-assigned localhost port and start serving."""
        server = MockupDB(verbose=self._verbose)
        try:
            port = server.run()
        except OSError as e:
            raise MemberStartError(
                f"{self._role.value} member could not bind: {e}"
            ) from e

        self._server = server
        self._address = MemberAddress(host=server.host, port=port)
        member_log.debug("Started {} member on {}", self._role.value, self._address)
        return self._address

    def stop(self) -> None:
        """Close listening and accepted sockets and join the server threads."""
        if self._server is None:
            return
        self._server.stop()
        member_log.debug("Stopped {} member on {}", self._role.value, self._address)
        self._server = None

    def set_verbose(self, verbose: bool) -> None:
        self._verbose = verbose
        if self._server is not None:
            self._server.verbose = verbose

    def autoresponds(self, handler: RequestHandler) -> None:
        """Register ``handler`` ahead of every responder registered so far.

        ``mockupdb`` consults responders newest first; a handler returning True
        marks the request handled.
        """

        def _respond(request: Request) -> bool:
            return handler(request)

        self._require_server().autoresponds(_respond)

    def funnel_into(self, funnel: RequestFunnel) -> None:
        """Hand every request no later responder answers to ``funnel``."""

        def _push(request: Request) -> bool:
            if self._verbose:
                member_log.info(
                    "{} {} funneled {!r}",
                    self._role.value,
                    self._address,
                    request,
                )
            funnel.push(QueuedRequest(request=request, member=self))
            return True

        self.autoresponds(_push)

    def install_handshake(self, factory: HandshakeFactory) -> None:
        """Answer every handshake command with ``factory(command_name)``."""
        self._handshake_factory = factory

        def _handshake(request: Request) -> bool:
            command_name = getattr(request, "command_name", None)
            if not is_handshake_command(command_name):
                return False
            request.reply(factory(command_name))
            return True

        self.autoresponds(_handshake)

    def handshake(self, command_name: CommandName = "ismaster") -> HandshakeDocument:
        """The document this member answers ``command_name`` with."""
        if self._handshake_factory is None:
            raise MemberNotStartedError(
                f"{self._role.value} member has no handshake installed"
            )
        return self._handshake_factory(command_name)

    def _require_server(self) -> MockupDB:
        if self._server is None:
            raise MemberNotStartedError(
                f"{self._role.value} member must be started before adding responders"
            )
        return self._server

    def __repr__(self) -> str:
        where = self._address if self._address is not None else "unstarted"
        return f"Member({self._role.value}, {where})"
