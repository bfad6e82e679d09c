from enum import Enum


class MemberRole(Enum):
    """Role a simulated member plays in the replica set."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    ARBITER = "arbiter"
