"""
Lane reordering engine.

move() takes one client to a new lane and/or a new priority and renumbers
every other affected client so each lane stays a dense 0..k-1 ranking.

A move is a lane transfer, an intra-lane rank change, or both:

  transfer   the client joins the bottom of the destination lane and the
             source lane closes the gap it left behind
  append     priority >= lane length: client goes to the last slot
  move down  cur < priority < lane length: members in (cur, priority] step up
  move up    priority < cur: members in [priority, cur) step down

The moving client is excluded from every shift and never parked on a
temporary slot.
"""
import logging
from typing import List, Optional

from .errors import InvalidPriorityError
from .lanes import LaneSnapshot
from .schema import Client, ClientStatus

logger = logging.getLogger(__name__)


def validate_priority(priority) -> int:
    """Reject anything that is not a non-negative int (bools included)."""
    if isinstance(priority, bool) or not isinstance(priority, int) or priority < 0:
        raise InvalidPriorityError(
            "Invalid priority provided.",
            "Priority can only be a non-negative integer.",
        )
    return priority


class ReorderEngine:
    """Applies moves against a ClientStore, one transaction per move."""

    def __init__(self, store):
        self.store = store

    def move(
        self,
        client_id: int,
        status=None,
        priority: Optional[int] = None,
    ) -> List[Client]:
        """
        Move a client and return the refreshed list of every client.

        Raises NotFoundError, InvalidStatusError or InvalidPriorityError
        before anything is written, and OperationFailedError if storage
        fails part-way (in which case nothing is written at all).
        """
        with self.store.transaction() as session:
            snapshot = LaneSnapshot.load(session)
            client = snapshot.find_by_id(client_id)
            target_status = ClientStatus.parse(status) if status is not None else None
            if priority is not None:
                validate_priority(priority)

            if self._is_noop(client, target_status, priority, snapshot):
                logger.debug(f"Move of client {client_id} is a no-op")
                return snapshot.load_all()

            final = self._apply(session, snapshot, client, target_status, priority)
            logger.info(
                f"Moved client {client.id}: {client.status.value}#{client.priority}"
                f" → {final[0].value}#{final[1]}"
            )
            return session.list()

    # ── Planning ─────────────────────────────────────────────────────────────

    @staticmethod
    def _is_noop(client: Client, status, priority, snapshot: LaneSnapshot) -> bool:
        if status is None and priority is None:
            return True
        same_status = status is None or status == client.status
        if not same_status:
            return False
        if priority is None or priority == client.priority:
            return True
        # Already last and asked to go to (or past) the end of its own lane
        last_slot = snapshot.lane_length(client.status) - 1
        return min(priority, last_slot) == client.priority

    # ── Mutation ─────────────────────────────────────────────────────────────

    def _apply(self, session, snapshot, client, target_status, priority):
        """Run the transfer and rank-change steps; returns (lane, priority)."""
        dest = target_status or client.status
        cur = client.priority
        transferred = False

        if target_status is not None and target_status != client.status:
            cur = self._transfer(session, snapshot, client, dest)
            transferred = True

        if priority is None:
            return dest, cur

        lane_length = snapshot.lane_length(dest) + (1 if transferred else 0)

        if priority >= lane_length:
            # append: the last slot is lane_length - 1
            last_slot = lane_length - 1
            if cur != last_slot:
                session.shift_priority_down(cur, dest, exclude_id=client.id)
                session.update_status_and_priority(client.id, dest, last_slot)
            return dest, last_slot

        if priority > cur:
            session.shift_priority_down(cur, dest, upper=priority, exclude_id=client.id)
            session.update_status_and_priority(client.id, dest, priority)
        elif priority < cur:
            session.shift_priority_up(priority, dest, upper=cur, exclude_id=client.id)
            session.update_status_and_priority(client.id, dest, priority)
        return dest, priority

    @staticmethod
    def _transfer(session, snapshot, client, dest) -> int:
        """Put the client at the bottom of dest and compact its old lane."""
        bottom = snapshot.lane_length(dest)
        session.update_status_and_priority(client.id, dest, bottom)
        session.shift_priority_down(client.priority, client.status)
        return bottom
