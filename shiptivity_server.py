#!/usr/bin/env python3
"""
Shiptivity API Server
---------------------
JSON API over the clients SQLite DB. Clients live in three lanes
(backlog, in-progress, complete); PUT reorders them through the lane engine.

Usage:
    python shiptivity_server.py --db ./clients.db --port 3001

API:
    GET /                          → { message }
    GET /api/v1/clients?status=    → [client, ...]   (status optional; lane order)
    POST /api/v1/clients           → JSON body: { name, description?, status? }
                                     Returns: client, appended to its lane
    GET /api/v1/clients/<id>       → client
    PUT /api/v1/clients/<id>       → JSON body: { status?, priority? }
                                     Returns: [client, ...] after reordering
    DELETE /api/v1/clients/<id>    → [client, ...] after closing the gap
    GET /health                    → { status, db, stats, violations }

Errors come back as { message, long_message }.
"""

import hmac
import logging
import sys
from functools import wraps

from flask import Flask, jsonify, request

from shiptivity.config import Config
from shiptivity.errors import (
    InvalidBodyError,
    InvalidIdError,
    InvalidStatusError,
    NotFoundError,
    OperationFailedError,
    ShiptivityError,
)
from shiptivity.lanes import LaneSnapshot, lane_violations
from shiptivity.reorder import ReorderEngine
from shiptivity.schema import ClientStatus
from shiptivity.store import ClientStore

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidBodyError: 400,
    InvalidIdError: 400,
    InvalidStatusError: 400,
    NotFoundError: 404,
    OperationFailedError: 500,
}


def parse_client_id(raw: str) -> int:
    try:
        return int(raw, 10)
    except (TypeError, ValueError):
        raise InvalidIdError(
            "Invalid id provided.",
            "Id can only be integer.",
        ) from None


def json_body() -> dict:
    """Decode the request body; absent means {}, anything but an object is rejected."""
    raw = request.get_data().strip()
    if not raw:
        return {}
    data = request.get_json(force=True, silent=True)
    if data is None and raw != b"null":
        raise InvalidBodyError("Invalid request body.", "Body must be valid JSON.")
    if not isinstance(data, dict):
        raise InvalidBodyError("Invalid request body.", "Body must be a JSON object.")
    return data


def create_app(cfg: Config = None) -> Flask:
    cfg = cfg or Config.load()
    app = Flask(__name__)
    app.config["SHIPTIVITY"] = cfg

    store = ClientStore(cfg.db_path)
    engine = ReorderEngine(store)

    # ── Auth ─────────────────────────────────────────────────────────────────

    def require_api_key(f):
        """Decorator: when an API secret is configured, require X-API-Key."""
        @wraps(f)
        def decorated(*args, **kwargs):
            if not cfg.api_secret:
                return f(*args, **kwargs)
            provided = request.headers.get("X-API-Key", "").strip()
            if not hmac.compare_digest(provided, cfg.api_secret):
                code = 401 if not provided else 403
                return jsonify({"message": "Unauthorized", "long_message": ""}), code
            return f(*args, **kwargs)
        return decorated

    # ── Errors ───────────────────────────────────────────────────────────────

    @app.errorhandler(ShiptivityError)
    def handle_board_error(e):
        # InvalidPriorityError and any other board error fall back to 400
        code = ERROR_STATUS.get(type(e), 400)
        if code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.long_message}")
        return jsonify(e.to_dict()), code

    # ── Routes ───────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return jsonify({"message": "SHIPTIVITY API. Read documentation to see API docs"})

    @app.route("/api/v1/clients", methods=["GET"])
    def api_clients():
        status = request.args.get("status")
        if status:
            clients = LaneSnapshot(store.list_by_status(status)).lane(status)
        else:
            clients = store.list_all()
        return jsonify([c.to_dict() for c in clients])

    @app.route("/api/v1/clients", methods=["POST"])
    @require_api_key
    def api_create_client():
        """Create a client at the bottom of its lane (backlog by default)."""
        data = json_body()
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise InvalidBodyError("Invalid request body.", "name is required.")
        client = store.add(
            name.strip(),
            description=data.get("description"),
            status=data.get("status") or ClientStatus.BACKLOG,
        )
        return jsonify(client.to_dict()), 201

    @app.route("/api/v1/clients/<client_id>", methods=["GET"])
    def api_client(client_id):
        cid = parse_client_id(client_id)
        client = store.get(cid)
        if client is None:
            raise NotFoundError("Invalid id provided.", "Cannot find client with that id.")
        return jsonify(client.to_dict())

    @app.route("/api/v1/clients/<client_id>", methods=["PUT"])
    @require_api_key
    def api_move_client(client_id):
        """Change a client's lane and/or priority; returns every client."""
        cid = parse_client_id(client_id)
        data = json_body()
        clients = engine.move(cid, status=data.get("status"), priority=data.get("priority"))
        return jsonify([c.to_dict() for c in clients])

    @app.route("/api/v1/clients/<client_id>", methods=["DELETE"])
    @require_api_key
    def api_delete_client(client_id):
        """Delete a client, closing the gap in its lane; returns every client."""
        cid = parse_client_id(client_id)
        if not store.remove(cid):
            raise NotFoundError("Invalid id provided.", "Cannot find client with that id.")
        return jsonify([c.to_dict() for c in store.list_all()])

    @app.route("/health")
    def health():
        violations = lane_violations(store.list_all())
        return jsonify({
            "status": "ok" if not violations else "degraded",
            "db": cfg.db_path,
            "lanes": ClientStatus.names(),
            "stats": store.get_stats(),
            "violations": violations,
        })

    return app


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Shiptivity API Server")
    parser.add_argument("--config", help="Path to shiptivity.yaml")
    parser.add_argument("--host", help="Bind address (use 0.0.0.0 to expose on network)")
    parser.add_argument("--port", type=int)
    parser.add_argument("--db", help="Path to clients.db (overrides SHIPTIVITY_DB env var)")
    args = parser.parse_args()

    cfg = Config.load(args.config)
    if args.db:
        cfg.db_path = args.db
    if args.host:
        cfg.host = args.host
    if args.port:
        cfg.port = args.port

    logging.basicConfig(
        level=getattr(logging, cfg.log_level.upper(), logging.INFO),
        format="%(asctime)s [shiptivity] %(levelname)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    app = create_app(cfg)
    logger.info(f"Serving {cfg.db_path} on http://{cfg.host}:{cfg.port}")
    app.run(host=cfg.host, port=cfg.port, debug=False, threaded=True)
