"""
Network address of one simulated replica-set member.

Addresses only exist once a member has bound its listening socket, so they
are created from the running server and never guessed ahead of time.
"""

from __future__ import annotations

from dataclasses import dataclass

from hypothesis import strategies as st

from .type_aliases import HostAddress, HostAndPort, PortNumber

MIN_PORT = 1
MAX_PORT = 65535


@dataclass(frozen=True, slots=True)
class MemberAddress:
    """Bound host and port of a member."""

    host: HostAddress
    port: PortNumber

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("Host cannot be empty")
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(
                f"Port must be between {MIN_PORT} and {MAX_PORT}, got {self.port}"
            )

    @classmethod
    def parse(cls, host_and_port: HostAndPort) -> MemberAddress:
        """Parse a "host:port" string."""
        host, sep, port = host_and_port.rpartition(":")
        if not sep:
            raise ValueError(f"Missing port in address {host_and_port!r}")
        try:
            return cls(host=host, port=int(port))
        except ValueError as e:
            raise ValueError(f"Invalid address {host_and_port!r}: {e}") from e

    @property
    def host_and_port(self) -> HostAndPort:
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.host_and_port


# Hypothesis strategies for property-based testing
def member_address_strategy() -> st.SearchStrategy[MemberAddress]:
    """Generate valid MemberAddress instances for testing."""
    return st.builds(
        MemberAddress,
        host=st.one_of(
            st.just("localhost"),
            st.just("127.0.0.1"),
            st.text(
                min_size=1,
                max_size=20,
                alphabet=st.characters(
                    whitelist_categories=["Ll", "Nd"], whitelist_characters="-."
                ),
            ),
        ),
        port=st.integers(min_value=MIN_PORT, max_value=MAX_PORT),
    )


def unique_member_addresses_strategy(
    min_size: int = 1, max_size: int = 10
) -> st.SearchStrategy[list[MemberAddress]]:
    """Generate lists of distinct member addresses, as a bound topology has."""
    return st.lists(
        member_address_strategy(),
        min_size=min_size,
        max_size=max_size,
        unique_by=lambda address: address.host_and_port,
    )
