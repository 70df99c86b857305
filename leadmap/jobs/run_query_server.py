"""HTTP entrypoint that queues collection runs and serves report files."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict

from flask import Flask, jsonify, request

from leadmap.core.config import ConfigError, get_settings, require_api_key
from leadmap.core.storage import list_reports, load_report
from leadmap.jobs.run_query import run_query_job

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
# One worker: queued runs execute one at a time against the provider.
_executor = ThreadPoolExecutor(max_workers=1)

# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; only reads ENV-based settings."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "city": settings.city,
                "api_key_configured": bool(settings.google_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/reports")
def reports_index() -> Any:
    settings = get_settings()
    return jsonify({"data": list_reports(settings.output_dir)}), 200


@app.get("/reports/<name>")
def report_detail(name: str) -> Any:
    settings = get_settings()
    if Path(name).name != name or not name.endswith(".json"):
        return jsonify({"error": "invalid report name"}), 400

    path = Path(settings.output_dir).joinpath(name)
    if not path.is_file():
        return jsonify({"error": "report not found"}), 404
    return jsonify(load_report(path)), 200


@app.post("/collect")
def enqueue_collect() -> Any:
    """
    Queue a collection run.
    Required JSON fields: sector
    Optional: queries (list of str), max_pages (int), output (str)
    """
    try:
        require_api_key(get_settings())
    except ConfigError as exc:
        logger.error("Refusing to queue collection job: %s", exc)
        return jsonify({"error": str(exc)}), 503

    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    sector = str(payload.get("sector") or "").strip()
    if not sector:
        return jsonify({"error": "missing fields: sector"}), 400

    queries_raw = payload.get("queries")
    queries = None
    if queries_raw is not None:
        if not isinstance(queries_raw, list) or not all(isinstance(q, str) for q in queries_raw):
            return jsonify({"error": "queries must be a list of strings"}), 400
        queries = queries_raw

    max_pages_raw = payload.get("max_pages")
    max_pages = None
    if max_pages_raw is not None:
        try:
            max_pages = int(max_pages_raw)
            if max_pages <= 0:
                return jsonify({"error": "max_pages must be positive"}), 400
        except (TypeError, ValueError):
            return jsonify({"error": "max_pages must be numeric"}), 400

    job_args = dict(sector=sector, queries=queries, max_pages=max_pages)
    output = payload.get("output")
    if output:
        if Path(str(output)).name != output or not str(output).endswith(".json"):
            return jsonify({"error": "output must be a bare .json filename"}), 400
        job_args["output"] = output

    logger.info("Queueing collection job: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued"}}), 202


# ---------- Internals ----------


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        path = run_query_job(**job_args)
        logger.info("Collection job finished: %s", path)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Collection job failed: %s", exc)


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
