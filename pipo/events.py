"""Consumption of ingested sentiments in batches."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial

from pipo.broker import Broker
from pipo.models import RawSentiment
from pipo.processing import ProcessorService, ProcessRawDataOutput

BATCH_SIZE = 1000

_WORKERS = 10


class EventHandler:
    """Collects ingested sentiments into batches and hands them to the service."""

    def __init__(
        self,
        broker: Broker,
        service: ProcessorService,
        sentiment_ingested_topic: str,
        *,
        logger: logging.Logger | None = None,
        batch_size: int = BATCH_SIZE,
        workers: int = _WORKERS,
    ) -> None:
        self.broker = broker
        self.service = service
        self.sentiment_ingested_topic = sentiment_ingested_topic
        self.logger = logger or logging.getLogger(__name__)
        self.batch_size = batch_size
        self.workers = workers

    def subscribe(self) -> list[Exception]:
        """Consume the topic until the subscription ends and return its errors.

        Batch processing failures are logged, not returned. Whatever is left
        in the last partial batch is processed before returning.
        """
        errors: list[Exception] = []
        batch: list[RawSentiment] = []

        with ThreadPoolExecutor(max_workers=self.workers) as pool:

            def submit(items: list[RawSentiment]) -> None:
                future = pool.submit(self.service.process_raw_data, items)
                future.add_done_callback(partial(self._report, len(items)))

            def on_message(message: bytes) -> None:
                self.logger.info("received sentiment ingested")
                self.logger.debug("received sentiment ingested: %r", message)
                raw = RawSentiment.from_json(message)
                self.logger.info("parsed sentiment ingested: raw-sentiment-id=%d", raw.id)
                batch.append(raw)
                self.logger.debug("batch-size=%d", len(batch))
                if len(batch) >= self.batch_size:
                    submit(list(batch))
                    batch.clear()
                    self.logger.debug("sent new batch")

            try:
                self.broker.subscribe(self.sentiment_ingested_topic, on_message)
            except Exception as err:
                errors.append(err)

            if batch:
                submit(list(batch))
                batch.clear()

        return errors

    def _report(self, size: int, future: Future[ProcessRawDataOutput]) -> None:
        err = future.exception()
        if err is not None:
            self.logger.error("error processing sentiment ingested: %s", err)
            return
        self.logger.info(
            "processed batch: batch-size=%d success-count=%d",
            size,
            future.result().success_count,
        )