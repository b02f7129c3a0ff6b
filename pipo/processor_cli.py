"""Command that runs the processor service."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
from socketserver import ThreadingMixIn
from typing import Any, Sequence
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from dotenv import load_dotenv
from flask import Flask

from pipo.broker import RedisStreamBroker
from pipo.config import ConfigError, ProcessorConfig
from pipo.events import EventHandler
from pipo.health import register_probes
from pipo.processing import ProcessorService
from pipo.repository import SqlSentimentRepository

logger = logging.getLogger(__name__)

_POLL_SECONDS = 0.2
_SHUTDOWN_TIMEOUT = 10.0


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug(format, *args)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pipo-processor",
        description="Consume ingested sentiments and store them.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="file with environment variables to load first (default: .env)",
    )
    return parser.parse_args(argv)


def _serve(server: WSGIServer, stop: threading.Event, failed: threading.Event) -> None:
    try:
        server.serve_forever(poll_interval=_POLL_SECONDS)
    except Exception as err:
        logger.error("failed to start rest server: %s", err)
        failed.set()
        stop.set()


def _consume(
    handler: EventHandler,
    stop: threading.Event,
    failed: threading.Event,
    shutting_down: threading.Event,
) -> None:
    logger.info("event handler subscribed")
    errors = handler.subscribe()
    if shutting_down.is_set():
        return
    reason = "; ".join(str(err) for err in errors) or "subscription ended"
    logger.error("failed to subscribe to event handler: %s", reason)
    failed.set()
    stop.set()


def _wait_for_stop(stop: threading.Event) -> None:
    previous = signal.signal(signal.SIGINT, lambda signum, frame: stop.set())
    try:
        while not stop.wait(_POLL_SECONDS):
            pass
    finally:
        signal.signal(signal.SIGINT, previous)


def _graceful_shutdown(
    server: WSGIServer,
    repository: SqlSentimentRepository,
    broker: RedisStreamBroker,
) -> None:
    try:
        server.shutdown()
        server.server_close()
    except Exception as err:
        logger.error("failed to stop rest server: %s", err)

    try:
        repository.close()
    except Exception as err:
        logger.error("failed to close database: %s", err)
    logger.info("database closed")

    try:
        broker.close()
    except Exception as err:
        logger.error("failed to close redis client: %s", err)
    logger.info("redis client closed")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the processor until interrupted; return the process exit status."""
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    if not load_dotenv(args.env_file):
        logger.warning("failed to find .env file: %s", args.env_file)

    try:
        cfg = ProcessorConfig.from_env()
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

    try:
        repository = SqlSentimentRepository(cfg.database_url)
        repository.ping()
    except Exception as err:
        logger.error("failed to connect to database: %s", err)
        broker.close()
        return 1
    logger.info("database connected")

    service = ProcessorService(
        repository, broker=broker, sentiment_ingest_topic=cfg.sentiment_ingested_topic
    )
    handler = EventHandler(broker, service, cfg.sentiment_ingested_topic)

    stop = threading.Event()
    failed = threading.Event()
    shutting_down = threading.Event()
    consumer = threading.Thread(
        target=_consume, args=(handler, stop, failed, shutting_down), daemon=True
    )
    consumer.start()

    app = Flask(__name__)
    register_probes(app, {"database": repository.ping, "redis": broker.ping})
    logger.info("registered probes")

    try:
        server = make_server(
            "",
            int(cfg.rest_server_port),
            app,
            server_class=_ThreadingWSGIServer,
            handler_class=_QuietHandler,
        )
    except (OSError, ValueError, OverflowError) as err:
        logger.error("failed to start rest server: %s", err)
        shutting_down.set()
        repository.close()
        broker.close()
        consumer.join(_SHUTDOWN_TIMEOUT)
        return 1
    logger.info("rest server started: port=%s", cfg.rest_server_port)

    threading.Thread(target=_serve, args=(server, stop, failed), daemon=True).start()

    _wait_for_stop(stop)
    if not failed.is_set():
        logger.info("received interrupt signal")

    shutting_down.set()
    _graceful_shutdown(server, repository, broker)
    consumer.join(_SHUTDOWN_TIMEOUT)
    return 1 if failed.is_set() else 0


if __name__ == "__main__":
    raise SystemExit(main())