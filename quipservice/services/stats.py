"""In-memory usage counters for an API client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class UsageStats:
    """Counts API invocations per operation plus a global query total.

    Counters only go up. One instance belongs to one client; nothing here
    is shared across clients.
    """

    query_count: int = field(default=0, init=False)
    operations: dict[str, int] = field(default_factory=dict, init=False)

    def inc(self, operation: str) -> None:
        self.query_count += 1
        self.operations[operation] = self.operations.get(operation, 0) + 1

    def get(self, operation: str) -> int:
        return self.operations.get(operation, 0)

    def snapshot(self) -> dict:
        return {
            "query_count": self.query_count,
            "operations": dict(self.operations),
        }
