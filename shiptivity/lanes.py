"""
Lane state reader.

A LaneSnapshot is taken once, at the start of a move, and answers every
length and priority question for that move. Re-reading mid-move would count
the moving client twice.
"""
from collections import defaultdict
from typing import Dict, Iterable, List

from .errors import NotFoundError
from .schema import Client, ClientStatus


class LaneSnapshot:
    """Read-only view of the board as it stood when the snapshot was taken."""

    def __init__(self, clients: Iterable[Client]):
        self._clients = list(clients)
        self._by_id = {c.id: c for c in self._clients}
        self._lengths: Dict[ClientStatus, int] = defaultdict(int)
        for c in self._clients:
            self._lengths[c.status] += 1

    @classmethod
    def load(cls, session) -> "LaneSnapshot":
        """Snapshot every client visible to an open StoreSession."""
        return cls(session.list())

    def load_all(self) -> List[Client]:
        """All clients, in storage order."""
        return list(self._clients)

    def find_by_id(self, client_id: int) -> Client:
        try:
            return self._by_id[client_id]
        except KeyError:
            raise NotFoundError(
                "Invalid id provided.",
                "Cannot find client with that id.",
            ) from None

    def lane_length(self, status) -> int:
        return self._lengths[ClientStatus.parse(status)]

    def priority_of(self, client_id: int) -> int:
        return self.find_by_id(client_id).priority

    def lane(self, status) -> List[Client]:
        """Members of one lane, top of lane first."""
        status = ClientStatus.parse(status)
        return sorted(
            (c for c in self._clients if c.status == status),
            key=lambda c: (c.priority, c.id),
        )


def lane_violations(clients: Iterable[Client]) -> Dict[str, List[str]]:
    """
    Check every lane for a dense 0..k-1 ranking.

    Returns {lane name: [problem, ...]} for lanes with gaps or duplicates;
    an empty dict means the board is consistent.
    """
    lanes: Dict[ClientStatus, List[int]] = defaultdict(list)
    for c in clients:
        lanes[c.status].append(c.priority)

    problems: Dict[str, List[str]] = {}
    for status, priorities in lanes.items():
        issues = []
        seen = set()
        for p in sorted(priorities):
            if p in seen:
                issues.append(f"duplicate priority {p}")
            seen.add(p)
        for p in range(len(priorities)):
            if p not in seen:
                issues.append(f"missing priority {p}")
        for p in sorted(seen):
            if p < 0 or p >= len(priorities):
                issues.append(f"out of range priority {p}")
        if issues:
            problems[status.value] = issues
    return problems
