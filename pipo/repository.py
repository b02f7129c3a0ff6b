"""SQL storage for processed sentiments."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    insert,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from pipo.models import Sentiment

metadata = MetaData()

sentiments_table = Table(
    "sentiments",
    metadata,
    Column("id", String, primary_key=True),
    Column("document_id", Integer, nullable=False),
    Column("excerpt", String, nullable=False),
    Column("comment", String, nullable=False),
    Column("emotion", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


class SqlSentimentRepository:
    """Stores sentiments in the ``sentiments`` table of a SQL database."""

    def __init__(self, engine: Engine | str) -> None:
        self.engine = engine if isinstance(engine, Engine) else create_engine(engine)

    def create_many(self, sentiments: Sequence[Sentiment]) -> int:
        """Insert all sentiments in one statement and return the rows affected."""
        if not sentiments:
            return 0

        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": s.id,
                "document_id": s.document_id,
                "excerpt": s.excerpt,
                "comment": s.comment,
                "emotion": s.emotion,
                "created_at": now,
            }
            for s in sentiments
        ]
        try:
            with self.engine.begin() as conn:
                result = conn.execute(insert(sentiments_table).values(rows))
                return result.rowcount
        except SQLAlchemyError as err:
            raise RuntimeError(f"failed to batch insert sentiments: {err}") from err

    def ping(self) -> None:
        """Raise if the database cannot be reached."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def close(self) -> None:
        """Release every pooled connection."""
        self.engine.dispose()