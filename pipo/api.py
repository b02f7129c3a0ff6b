"""HTTP endpoints of the ingestor service."""

from __future__ import annotations

import json
from typing import Mapping

from flask import Flask, jsonify, request

from pipo.health import HealthCheck, register_probes
from pipo.ingestion import IngestorService


class _BadRequest(Exception):
    pass


def _read_records() -> int:
    try:
        payload = json.loads(request.get_data(as_text=True) or "")
    except ValueError as err:
        raise _BadRequest(f"invalid JSON body: {err}") from None
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise _BadRequest("request body must be a JSON object")
    records = payload.get("records")
    if records is not None and (isinstance(records, bool) or not isinstance(records, int)):
        raise _BadRequest(f"field 'records' must be an integer, got {records!r}")
    if not records:
        raise _BadRequest("field 'records' is required")
    return records


def register_endpoints(app: Flask, service: IngestorService) -> None:
    """Add ``POST /api/sentiment/ingest`` to ``app``."""

    def ingest_raw_data():
        try:
            records = _read_records()
        except _BadRequest as err:
            return jsonify({"error": str(err)}), 400

        try:
            output = service.ingest_raw_data(records)
        except Exception as err:
            return jsonify({"error": str(err)}), 500

        return (
            jsonify(
                {
                    "message": "Raw data ingested",
                    "data": {
                        "errors": [str(err) for err in output.errors],
                        "ingested_data_count": output.ingested_data_count,
                    },
                }
            ),
            202,
        )

    app.add_url_rule(
        "/api/sentiment/ingest", "ingest_raw_data", ingest_raw_data, methods=["POST"]
    )


def create_app(
    service: IngestorService, checks: Mapping[str, HealthCheck] | None = None
) -> Flask:
    """Build the ingestor application with its endpoints and probes."""
    app = Flask(__name__)
    register_endpoints(app, service)
    register_probes(app, checks or {})
    return app