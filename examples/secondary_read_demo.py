#!/usr/bin/env python3
"""Watch PyMongo discover a mock replica set and route a secondary read."""

from concurrent.futures import ThreadPoolExecutor

from pymongo import MongoClient, ReadPreference

from mockrs import ReplicaSetTopology
from mockrs.core.config import MockRSSettings
from mockrs.core.logging import configure_logging


def main():
    settings = MockRSSettings(verbose=True, log_level="WARNING")
    configure_logging(settings, colorize=True)

    # Recent PyMongo releases refuse servers older than MongoDB 4.2.
    with ReplicaSetTopology(
        max_wire_version=21, secondaries=2, settings=settings
    ) as rs:
        print(f"Replica set at {rs.uri}")

        with (
            MongoClient(rs.uri, serverSelectionTimeoutMS=5000) as client,
            ThreadPoolExecutor(max_workers=1) as pool,
        ):
            future = pool.submit(
                client.db.command,
                "count",
                "coll",
                read_preference=ReadPreference.SECONDARY,
            )

            request = rs.receives_command("db", {"count": "coll"}, timeout=5.0)
            if request is None:
                print("Client never sent count")
                return

            print(f"count arrived at {request.member}")
            rs.replies_to_command(request, {"ok": 1, "n": 42})
            print(f"Client got n={future.result(timeout=5.0)['n']}")


if __name__ == "__main__":
    main()
