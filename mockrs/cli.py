import time
from dataclasses import dataclass
from typing import Any

import orjson
from jsonargparse import CLI
from loguru import logger
from mockupdb import OpKillCursors
from rich.console import Console
from rich.table import Table

from mockrs.core.config import MockRSSettings
from mockrs.core.funnel import QueuedRequest
from mockrs.core.logging import configure_logging
from mockrs.core.matching import database_of, is_command
from mockrs.core.roles import MemberRole
from mockrs.core.topology import ReplicaSetTopology

ROLE_STYLES = {
    MemberRole.PRIMARY: "[green]primary[/green]",
    MemberRole.SECONDARY: "[cyan]secondary[/cyan]",
    MemberRole.ARBITER: "[yellow]arbiter[/yellow]",
}


def empty_command_reply(queued: QueuedRequest) -> dict[str, Any]:
    """``{"ok": 1}``, plus an exhausted cursor for ``find`` and ``getMore``."""
    name = (queued.command_name or "").lower()
    if name == "find":
        collection, batch = queued.doc["find"], "firstBatch"
    elif name == "getmore":
        collection, batch = queued.doc.get("collection"), "nextBatch"
    else:
        return {"ok": 1}
    namespace = f"{database_of(queued)}.{collection}"
    return {"ok": 1, "cursor": {"id": 0, "ns": namespace, batch: []}}


def answer_with_defaults(queued: QueuedRequest) -> None:
    """Give a funneled request the emptiest reply its opcode allows.

    Commands get ``{"ok": 1}`` (with an empty cursor where drivers expect
    one), queries and getmores an exhausted empty batch, and kill-cursors
    nothing since the opcode has no reply.
    """
    if isinstance(queued.request, OpKillCursors):
        return
    if is_command(queued):
        queued.replies_to_command(empty_command_reply(queued))
        return
    queued.replies(cursor_id=0, documents=[])


def members_table(topology: ReplicaSetTopology) -> Table:
    table = Table(title=f"Replica set {topology.settings.set_name}")

    table.add_column("#", justify="right")
    table.add_column("Role", justify="center")
    table.add_column("Address", style="blue", no_wrap=True)
    table.add_column("maxWireVersion", justify="right")

    for index, member in enumerate(topology.members):
        table.add_row(
            str(index),
            ROLE_STYLES[member.role],
            member.host_and_port,
            str(topology.max_wire_version),
        )
    return table


@dataclass(slots=True)
class MockRSCLI:
    """Run a mock replica set for manual client testing."""

    max_wire_version: int = 6
    secondaries: int = 2
    arbiters: int = 0
    verbose: bool = False

    def _topology(self) -> ReplicaSetTopology:
        settings = MockRSSettings(verbose=self.verbose)
        configure_logging(settings, colorize=True)
        return ReplicaSetTopology(
            self.max_wire_version,
            self.secondaries,
            self.arbiters,
            settings=settings,
        )

    def serve(self, duration: float | None = None) -> None:
        """Serve until interrupted, answering client traffic with empty replies.

        Args:
            duration: Stop after this many seconds instead of waiting for Ctrl-C.
        """
        console = Console()
        deadline = None if duration is None else time.monotonic() + duration

        with self._topology() as topology:
            console.print(members_table(topology))
            console.print(f"[bold]Connect with:[/bold] {topology.uri}")
            try:
                while deadline is None or time.monotonic() < deadline:
                    queued = topology.receives(timeout=0.5)
                    if queued is None:
                        continue
                    logger.info("{} received {!r}", queued.member, queued.request)
                    answer_with_defaults(queued)
            except KeyboardInterrupt:
                console.print("[dim]Stopping replica set[/dim]")

    def describe(self) -> None:
        """Start the replica set briefly and print each member's handshake."""
        with self._topology() as topology:
            handshakes = [
                {
                    "role": member.role.value,
                    "address": member.host_and_port,
                    "handshake": topology.handshake_for(member),
                }
                for member in topology.members
            ]
            print(orjson.dumps(handshakes, option=orjson.OPT_INDENT_2).decode())


def main() -> None:
    CLI(MockRSCLI, as_dict=False)  # type: ignore[no-untyped-call]


if __name__ == "__main__":
    main()
