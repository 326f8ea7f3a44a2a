"""Shared test fixtures for Shiptivity lane tests."""

import sys
from pathlib import Path

import pytest

# Ensure the repo root (shiptivity/, shiptivity_server.py) is importable
sys.path.insert(0, str(Path(__file__).parent.parent))

from shiptivity.store import ClientStore


def build_rows(lanes):
    """{"backlog": 3, ...} → rows with ids 1.. and dense priorities per lane."""
    rows = []
    next_id = 1
    for status, count in lanes.items():
        for priority in range(count):
            rows.append({
                "id": next_id,
                "name": f"Client {next_id}",
                "description": None,
                "status": status,
                "priority": priority,
            })
            next_id += 1
    return rows


@pytest.fixture
def store(tmp_path):
    return ClientStore(str(tmp_path / "clients.db"))


@pytest.fixture
def board(store):
    """4 backlog, 2 in-progress, 3 complete (ids 1-4, 5-6, 7-9)."""
    store.seed(build_rows({"backlog": 4, "in-progress": 2, "complete": 3}))
    return store
