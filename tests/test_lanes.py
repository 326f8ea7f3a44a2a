"""
Tests for the lane snapshot reader and density checks.
"""
import pytest

from shiptivity.errors import InvalidStatusError, NotFoundError
from shiptivity.lanes import LaneSnapshot, lane_violations
from shiptivity.schema import Client, ClientStatus


def make(cid, status, priority):
    return Client(id=cid, name=f"c{cid}", status=ClientStatus(status), priority=priority)


class TestLaneSnapshot:

    def setup_method(self):
        self.snap = LaneSnapshot([
            make(3, "backlog", 1),
            make(1, "backlog", 0),
            make(2, "complete", 0),
        ])

    def test_load_all_keeps_storage_order(self):
        assert [c.id for c in self.snap.load_all()] == [3, 1, 2]

    def test_find_by_id(self):
        assert self.snap.find_by_id(2).status == ClientStatus.COMPLETE
        with pytest.raises(NotFoundError):
            self.snap.find_by_id(42)

    def test_lane_length(self):
        assert self.snap.lane_length("backlog") == 2
        assert self.snap.lane_length(ClientStatus.COMPLETE) == 1
        assert self.snap.lane_length("in-progress") == 0

    def test_lane_length_unknown_status(self):
        with pytest.raises(InvalidStatusError):
            self.snap.lane_length("done")

    def test_priority_of(self):
        assert self.snap.priority_of(3) == 1

    def test_lane_sorted_by_priority(self):
        assert [c.id for c in self.snap.lane("backlog")] == [1, 3]

    def test_load_from_session(self, board):
        with board.transaction() as s:
            snap = LaneSnapshot.load(s)
        assert snap.lane_length("backlog") == 4
        assert snap.lane_length("in-progress") == 2

    def test_snapshot_is_not_live(self, board):
        with board.transaction() as s:
            snap = LaneSnapshot.load(s)
            s.update_status_and_priority(1, "complete", 3)
        assert snap.lane_length("complete") == 3
        assert snap.find_by_id(1).status == ClientStatus.BACKLOG


class TestLaneViolations:

    def test_dense_board_is_clean(self, board):
        assert lane_violations(board.list_all()) == {}

    def test_empty_board_is_clean(self):
        assert lane_violations([]) == {}

    def test_gap_reported(self):
        problems = lane_violations([make(1, "backlog", 0), make(2, "backlog", 2)])
        assert "missing priority 1" in problems["backlog"]

    def test_duplicate_reported(self):
        problems = lane_violations([make(1, "complete", 0), make(2, "complete", 0)])
        assert "duplicate priority 0" in problems["complete"]
        assert "backlog" not in problems

    def test_lanes_checked_independently(self):
        clients = [make(1, "backlog", 0), make(2, "in-progress", 0), make(3, "in-progress", 1)]
        assert lane_violations(clients) == {}
