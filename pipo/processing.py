"""Validation, transformation and persistence of raw sentiments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, Protocol, Sequence

from pipo.models import RawSentiment, Sentiment, new_sentiment

DEFAULT_COMMENT = "Invalid UTF-8 text"

_EXCERPT_LIMIT = 100
_EXCERPT_KEEP = 97


class Emotion(IntEnum):
    """Sentiment values found in raw data."""

    NEGATIVE = 0
    NEUTRAL = 1
    POSITIVE = 2


class SentimentRepository(Protocol):
    """Storage for processed sentiments."""

    def create_many(self, sentiments: Sequence[Sentiment]) -> int:
        """Store the sentiments and return how many were created."""
        ...


class ProcessingError(Exception):
    """Base class for processing failures."""


class InvalidSentimentError(ProcessingError):
    def __init__(self) -> None:
        super().__init__("invalid sentiment")


class BlankCommentError(ProcessingError):
    def __init__(self) -> None:
        super().__init__("comment should not be empty")


class PersistSentimentError(ProcessingError):
    def __init__(self) -> None:
        super().__init__("failed to persist sentiment")


@dataclass
class ProcessRawDataOutput:
    """Result of processing a batch of raw sentiments."""

    sentiments: list[Sentiment] = field(default_factory=list)
    success_count: int = 0


def map_emotion(sentiment: int) -> str:
    """Name the emotion a raw sentiment value stands for."""
    try:
        return Emotion(sentiment).name.lower()
    except ValueError:
        return "unknown"


def validate_raw_data(raw: RawSentiment) -> None:
    """Raise if the raw sentiment cannot be processed."""
    if not Emotion.NEGATIVE <= raw.sentiment <= Emotion.POSITIVE:
        raise InvalidSentimentError()
    if raw.comment == "":
        raise BlankCommentError()


def transform_raw_data(raw: RawSentiment) -> Sentiment:
    """Turn a raw sentiment into a sentiment with an excerpt and emotion name."""
    emotion = map_emotion(raw.sentiment)
    comment = raw.comment
    try:
        encoded = comment.encode("utf-8")
    except UnicodeEncodeError:
        comment = excerpt = DEFAULT_COMMENT
    else:
        if len(encoded) > _EXCERPT_LIMIT:
            try:
                excerpt = encoded[:_EXCERPT_KEEP].decode("utf-8") + "..."
            except UnicodeDecodeError:
                comment = excerpt = DEFAULT_COMMENT
        else:
            excerpt = comment

    return new_sentiment(
        document_id=raw.id,
        excerpt=excerpt,
        comment=comment,
        emotion=emotion,
    )


class ProcessorService:
    """Business logic of the processor service."""

    def __init__(
        self,
        repository: SentimentRepository,
        *,
        broker: Any = None,
        sentiment_ingest_topic: str = "",
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.broker = broker
        self.sentiment_ingest_topic = sentiment_ingest_topic
        self.logger = logger or logging.getLogger(__name__)

    def process_raw_data(self, raw_sentiments: Iterable[RawSentiment]) -> ProcessRawDataOutput:
        """Validate and transform a batch, then store it in one go."""
        sentiments: list[Sentiment] = []
        for raw in raw_sentiments:
            validate_raw_data(raw)
            sentiments.append(transform_raw_data(raw))

        try:
            affected = self.repository.create_many(sentiments)
        except Exception as err:
            self.logger.error("failed to persist sentiments: %s", err)
            raise PersistSentimentError() from err

        return ProcessRawDataOutput(sentiments=sentiments, success_count=affected)