import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.exc import OperationalError

from pipo.models import new_sentiment
from pipo.repository import SqlSentimentRepository, metadata, sentiments_table


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(f"sqlite:///{tmp_path / 'pipo.sqlite'}")
    metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def repo(engine):
    repository = SqlSentimentRepository(engine)
    yield repository
    repository.close()


def _rows(engine):
    with engine.connect() as conn:
        return conn.execute(select(sentiments_table).order_by(sentiments_table.c.document_id)).all()


def test_create_many_inserts_rows(repo, engine):
    sentiments = [
        new_sentiment(1, "good", "good", "positive"),
        new_sentiment(2, "bad", "bad", "negative"),
    ]
    assert repo.create_many(sentiments) == len(sentiments)
    rows = _rows(engine)
    assert [(r.id, r.document_id, r.excerpt, r.comment, r.emotion) for r in rows] == [
        (s.id, s.document_id, s.excerpt, s.comment, s.emotion) for s in sentiments
    ]


def test_create_many_uses_one_timestamp(repo, engine):
    repo.create_many([new_sentiment(i, "x", "x", "neutral") for i in range(3)])
    stamps = {r.created_at for r in _rows(engine)}
    assert len(stamps) == 1


def test_create_many_empty_returns_zero_without_touching_database(tmp_path):
    missing_table = create_engine(f"sqlite:///{tmp_path / 'empty.sqlite'}")
    repository = SqlSentimentRepository(missing_table)
    assert repository.create_many([]) == 0
    repository.close()


def test_create_many_missing_table_raises(tmp_path):
    repository = SqlSentimentRepository(f"sqlite:///{tmp_path / 'empty.sqlite'}")
    with pytest.raises(RuntimeError, match="failed to batch insert sentiments"):
        repository.create_many([new_sentiment(1, "x", "x", "neutral")])
    repository.close()


def test_create_many_duplicate_id_raises_and_inserts_nothing(repo, engine):
    sentiment = new_sentiment(1, "x", "x", "neutral")
    with pytest.raises(RuntimeError, match="failed to batch insert sentiments"):
        repo.create_many([sentiment, sentiment])
    assert _rows(engine) == []


def test_ping_unreachable_database_raises(tmp_path):
    repository = SqlSentimentRepository(f"sqlite:///{tmp_path / 'no' / 'such' / 'db.sqlite'}")
    with pytest.raises(OperationalError):
        repository.ping()
    repository.close()


def test_ping_then_insert_after_close(repo, engine):
    repo.ping()
    repo.close()
    assert repo.create_many([new_sentiment(5, "x", "x", "positive")]) == 1
    assert [r.document_id for r in _rows(engine)] == [5]