"""Ingestion of the bundled sentiment data set into the broker."""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from pipo.broker import Broker
from pipo.csvparse import parse_file
from pipo.models import RawSentiment

DATA_FILE = Path(__file__).with_name("data") / "sentiment_data.csv"

_WORKERS = 10
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _atoi(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    return int(text)


@dataclass
class IngestRawDataOutput:
    """Result of an ingestion run."""

    ingested_data_count: int = 0
    errors: list[Exception] = field(default_factory=list)


class IngestorService:
    """Business logic of the ingestor service."""

    def __init__(
        self,
        broker: Broker,
        sentiment_ingest_topic: str,
        *,
        data_path: Path | str = DATA_FILE,
        logger: logging.Logger | None = None,
    ) -> None:
        self.broker = broker
        self.sentiment_ingest_topic = sentiment_ingest_topic
        self.data_path = Path(data_path)
        self.logger = logger or logging.getLogger(__name__)

    def ingest_raw_data(self, records: int) -> IngestRawDataOutput:
        """Publish the first ``records`` rows of the data set.

        Failures of single rows are collected in the output; failing to read
        the data set raises.
        """
        with open(self.data_path, encoding="utf-8", errors="replace", newline="") as source:
            rows = parse_file(source, records)

        ingested: list[RawSentiment] = []
        errors: list[Exception] = []
        with ThreadPoolExecutor(max_workers=_WORKERS) as pool:
            futures = [pool.submit(self._ingest_record, row) for row in rows]
            for future in futures:
                err = future.exception()
                if err is None:
                    ingested.append(future.result())
                else:
                    errors.append(err)

        self.logger.info(
            "ingested data: total-records=%d success-count=%d errors-count=%d",
            len(rows),
            len(ingested),
            len(errors),
        )
        return IngestRawDataOutput(ingested_data_count=len(ingested), errors=errors)

    def _ingest_record(self, record: Sequence[str]) -> RawSentiment:
        document_id = _atoi(record[0])
        sentiment = _atoi(record[2])
        raw = RawSentiment(id=document_id, comment=record[1], sentiment=sentiment)
        self.broker.publish(self.sentiment_ingest_topic, raw.to_json())
        return raw