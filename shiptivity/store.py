"""
Client storage backend (SQLite).

Every read and write happens inside a StoreSession bound to one connection
and one transaction. ClientStore.transaction() opens it with BEGIN IMMEDIATE
so concurrent movers serialize on SQLite's reserved lock.
"""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Dict, Any, Iterable

from .errors import OperationFailedError, ShiptivityError
from .schema import Client, ClientStatus

logger = logging.getLogger(__name__)


def _connect(db_path: str) -> sqlite3.Connection:
    """Open a connection in autocommit mode; transactions are explicit."""
    conn = sqlite3.connect(db_path, isolation_level=None, timeout=10.0)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def _status_value(status) -> str:
    return status.value if isinstance(status, ClientStatus) else status


class StoreSession:
    """Row-level operations scoped to one open transaction."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def get(self, client_id: int) -> Optional[Client]:
        row = self.conn.execute(
            "SELECT * FROM clients WHERE id = ? LIMIT 1", (client_id,)
        ).fetchone()
        return Client.from_dict(dict(row)) if row else None

    def list(self, status=None) -> List[Client]:
        """All clients in storage order, optionally limited to one lane."""
        if status is None:
            rows = self.conn.execute("SELECT * FROM clients ORDER BY id").fetchall()
        else:
            rows = self.conn.execute(
                "SELECT * FROM clients WHERE status = ? ORDER BY id",
                (_status_value(status),),
            ).fetchall()
        return [Client.from_dict(dict(r)) for r in rows]

    def update_status_and_priority(self, client_id: int, status, priority: int) -> None:
        self.conn.execute(
            "UPDATE clients SET status = ?, priority = ? WHERE id = ?",
            (_status_value(status), priority, client_id),
        )

    def shift_priority_down(
        self,
        threshold: int,
        status,
        upper: Optional[int] = None,
        exclude_id: Optional[int] = None,
    ) -> int:
        """Decrement lane members with threshold < priority (<= upper)."""
        sql = "UPDATE clients SET priority = priority - 1 WHERE status = ? AND priority > ?"
        params: list = [_status_value(status), threshold]
        if upper is not None:
            sql += " AND priority <= ?"
            params.append(upper)
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        return self.conn.execute(sql, params).rowcount

    def shift_priority_up(
        self,
        threshold: int,
        status,
        upper: Optional[int] = None,
        exclude_id: Optional[int] = None,
    ) -> int:
        """Increment lane members with threshold <= priority (< upper)."""
        sql = "UPDATE clients SET priority = priority + 1 WHERE status = ? AND priority >= ?"
        params: list = [_status_value(status), threshold]
        if upper is not None:
            sql += " AND priority < ?"
            params.append(upper)
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        return self.conn.execute(sql, params).rowcount

    def lane_length(self, status) -> int:
        return self.conn.execute(
            "SELECT COUNT(*) FROM clients WHERE status = ?", (_status_value(status),)
        ).fetchone()[0]

    def insert(self, client: Client) -> int:
        """Insert a row as-is. Callers own the lane invariant."""
        data = client.to_dict()
        if client.id is None:
            cur = self.conn.execute(
                "INSERT INTO clients (name, description, status, priority) VALUES (?, ?, ?, ?)",
                (data["name"], data["description"], data["status"], data["priority"]),
            )
        else:
            cur = self.conn.execute(
                "INSERT INTO clients (id, name, description, status, priority) VALUES (?, ?, ?, ?, ?)",
                (data["id"], data["name"], data["description"], data["status"], data["priority"]),
            )
        return cur.lastrowid

    def delete(self, client_id: int) -> bool:
        return self.conn.execute(
            "DELETE FROM clients WHERE id = ?", (client_id,)
        ).rowcount > 0


class ClientStore:
    """SQLite-backed store for board clients."""

    def __init__(self, db_path: str):
        """Initialize store and create tables if needed."""
        self.db_path = db_path
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self):
        """Create tables if they don't exist."""
        conn = _connect(self.db_path)
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS clients (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL DEFAULT '',
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'backlog',
                    priority INTEGER NOT NULL DEFAULT 0
                )
            """)
            # No UNIQUE(status, priority): shifts pass through duplicates mid-statement
            conn.execute("CREATE INDEX IF NOT EXISTS idx_clients_lane ON clients(status, priority)")
        finally:
            conn.close()

    @contextmanager
    def transaction(self):
        """Yield a StoreSession inside BEGIN IMMEDIATE … COMMIT.

        Board errors roll back and propagate unchanged; sqlite errors roll
        back and surface as OperationFailedError.
        """
        try:
            conn = _connect(self.db_path)
        except sqlite3.Error as e:
            raise OperationFailedError(
                "Operation failed.", f"Cannot open client database: {e}"
            ) from e
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield StoreSession(conn)
            conn.execute("COMMIT")
        except ShiptivityError:
            conn.execute("ROLLBACK")
            raise
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            logger.error(f"Transaction rolled back: {e}")
            raise OperationFailedError(
                "Operation failed.", f"Storage error, no changes were applied: {e}"
            ) from e
        except BaseException:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    # ── Conveniences (one transaction each) ──────────────────────────────────

    def get(self, client_id: int) -> Optional[Client]:
        with self.transaction() as s:
            return s.get(client_id)

    def list_all(self) -> List[Client]:
        with self.transaction() as s:
            return s.list()

    def list_by_status(self, status) -> List[Client]:
        status = ClientStatus.parse(status)
        with self.transaction() as s:
            return s.list(status)

    def add(self, name: str, description: Optional[str] = None, status=ClientStatus.BACKLOG) -> Client:
        """Append a new client at the bottom of its lane."""
        status = ClientStatus.parse(status)
        with self.transaction() as s:
            client = Client(
                id=None,
                name=name,
                description=description,
                status=status,
                priority=s.lane_length(status),
            )
            client.id = s.insert(client)
        logger.info(f"Added client {client.id} to {status.value} at priority {client.priority}")
        return client

    def remove(self, client_id: int) -> bool:
        """Delete a client and close the gap it leaves in its lane."""
        with self.transaction() as s:
            client = s.get(client_id)
            if client is None:
                return False
            s.delete(client_id)
            s.shift_priority_down(client.priority, client.status)
        logger.info(f"Removed client {client_id} from {client.status.value}")
        return True

    def seed(self, rows: Iterable[Dict[str, Any]]) -> int:
        """Bulk-insert raw rows (fixtures, demo data). Rows are taken verbatim."""
        count = 0
        with self.transaction() as s:
            for row in rows:
                data = dict(row)
                data.setdefault("id", None)
                if data["id"] is None:
                    client = Client(
                        id=None,
                        name=data.get("name", ""),
                        description=data.get("description"),
                        status=ClientStatus.parse(data.get("status", "backlog")),
                        priority=int(data.get("priority", 0)),
                    )
                else:
                    client = Client.from_dict(data)
                s.insert(client)
                count += 1
        return count

    def get_stats(self) -> Dict[str, Any]:
        """Client counts grouped by lane."""
        stats = {"by_status": {name: 0 for name in ClientStatus.names()}, "total": 0}
        with self.transaction() as s:
            for row in s.conn.execute("SELECT status, COUNT(*) FROM clients GROUP BY status"):
                stats["by_status"][row[0]] = row[1]
                stats["total"] += row[1]
        return stats
