"""Exceptions raised by the replica-set topology and its members."""


class MockRSError(Exception):
    """Base exception for mockrs errors."""

    pass


class MemberStartError(MockRSError):
    """Raised when a member cannot bind or start serving."""

    pass


class MemberNotStartedError(MockRSError):
    """Raised when a member's address is read before it has started."""

    pass


class TopologyStateError(MockRSError):
    """Raised when the topology lifecycle (run once, destroy once) is violated."""

    pass
