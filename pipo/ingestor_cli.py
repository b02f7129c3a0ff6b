"""Command that runs the ingestor service."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from socketserver import ThreadingMixIn
from typing import Any, Sequence
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from dotenv import load_dotenv

from pipo.api import create_app
from pipo.broker import RedisStreamBroker
from pipo.config import ConfigError, IngestorConfig
from pipo.ingestion import IngestorService

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.2


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug(format, *args)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pipo-ingestor",
        description="Serve the sentiment ingestion API.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="file with environment variables to load first (default: .env)",
    )
    return parser.parse_args(argv)


def _make_server(port: str, app: Any) -> WSGIServer:
    return make_server(
        "",
        int(port),
        app,
        server_class=_ThreadingWSGIServer,
        handler_class=_QuietHandler,
    )


def _serve(server: WSGIServer, stop: threading.Event, failed: threading.Event) -> None:
    try:
        server.serve_forever(poll_interval=_POLL_SECONDS)
    except Exception as err:
        logger.error("failed to start rest server: %s", err)
        failed.set()
        stop.set()


def _wait_for_stop(stop: threading.Event) -> None:
    previous = signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    try:
        while not stop.wait(_POLL_SECONDS):
            pass
    finally:
        signal.signal(signal.SIGINT, previous)


def _graceful_shutdown(server: WSGIServer, broker: RedisStreamBroker) -> None:
    try:
        server.shutdown()
        server.server_close()
    except Exception as err:
        logger.error("failed to stop rest server: %s", err)
    logger.info("rest server stopped")

    try:
        broker.close()
    except Exception as err:
        logger.error("failed to close redis client: %s", err)
    logger.info("redis client closed")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the ingestor until interrupted; return the process exit status."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if not load_dotenv(args.env_file):
        logger.warning("failed to find .env file: %s", args.env_file)

    try:
        cfg = IngestorConfig.from_env()
    except ConfigError as err:
        logger.error("failed to load config: %s", err)
        return 1
    logger.info("config loaded")

    try:
        broker = RedisStreamBroker.from_url(cfg.redis_url)
    except Exception as err:
        logger.error("failed to connect to redis: %s", err)
        return 1
    logger.info("redis connected")
    logger.info("redis broker created")

    service = IngestorService(broker, cfg.sentiment_ingested_topic)
    app = create_app(service, {"redis": broker.ping})
    logger.info("registered probes")

    try:
        server = _make_server(cfg.rest_server_port, app)
    except (OSError, ValueError, OverflowError) as err:
        logger.error("failed to start rest server: %s", err)
        broker.close()
        return 1
    logger.info("rest server started: port=%s", cfg.rest_server_port)

    stop = threading.Event()
    failed = threading.Event()
    threading.Thread(target=_serve, args=(server, stop, failed), daemon=True).start()

    _wait_for_stop(stop)
    if not failed.is_set():
        logger.info("received interrupt signal")

    _graceful_shutdown(server, broker)
    return 1 if failed.is_set() else 0


if __name__ == "__main__":
    raise SystemExit(main())