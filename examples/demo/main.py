"""
nscache Demo - Two Namespaces Sharing One Store
===============================================
This demo showcases:
- Namespace isolation between adapters sharing the process store
- Counters created on first increment
- Batch writes reporting failed keys
- Prefix-scoped clearing and metadata lookups
"""

from __future__ import annotations

import logging
import threading

from nscache import CacheAdapter
from nscache import IteratorMode

logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def main() -> None:
    sessions = CacheAdapter({"namespace": "sessions", "ttl": 30})
    stats = CacheAdapter({"namespace": "stats"})

    sessions.set("alice", {"cart": ["book"]})
    stats.set("alice", 0)
    print("sessions/alice:", sessions.get("alice"))
    print("stats/alice:", stats.get("alice"))

    print("page views:", stats.increment("views", 1), stats.increment("views", 1))

    failed = sessions.set_many({"bob": {"cart": []}, "lock": threading.Lock()})
    print("not stored:", failed)

    sessions.set("tmp-1", 1)
    sessions.set("tmp-2", 2)
    sessions.clear_by_prefix("tmp-")
    print("remaining keys:", sorted(sessions))

    print("metadata:", sessions.get_metadata("alice"))
    for value in sessions.get_iterator().set_mode(IteratorMode.VALUE):
        print("value:", value)

    sessions.flush()


if __name__ == "__main__":
    main()
