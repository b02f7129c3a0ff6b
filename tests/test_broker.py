import pytest

from pipo.broker import RedisStreamBroker


class FakeRedis:
    def __init__(self, batches=(), on_empty=None, ping_error=None):
        self.batches = list(batches)
        self.on_empty = on_empty
        self.ping_error = ping_error
        self.added = []
        self.reads = []
        self.closed = False

    def xadd(self, name, fields):
        self.added.append((name, fields))
        return b"1-0"

    def xread(self, streams, count=None, block=None):
        self.reads.append(dict(streams))
        if self.batches:
            return self.batches.pop(0)
        if self.on_empty is not None:
            self.on_empty()
        return []

    def ping(self):
        if self.ping_error is not None:
            raise self.ping_error
        return True

    def close(self):
        self.closed = True


def test_publish_appends_message_under_data_field():
    client = FakeRedis()
    broker = RedisStreamBroker(client)
    broker.publish("sentiments", b'{"id":1}')
    assert client.added == [("sentiments", {"data": b'{"id":1}'})]


def test_subscribe_delivers_messages_in_order_until_closed():
    client = FakeRedis(
        batches=[
            [[b"sentiments", [(b"1-0", {b"data": b"first"}), (b"2-0", {b"data": b"second"})]]],
            [[b"sentiments", [(b"3-0", {"data": "third"})]]],
        ]
    )
    broker = RedisStreamBroker(client, start_id="0")
    client.on_empty = broker.close
    received = []
    broker.subscribe("sentiments", received.append)
    assert received == [b"first", b"second", b"third"]
    assert client.closed


def test_subscribe_resumes_after_last_seen_entry():
    client = FakeRedis(batches=[[[b"t", [(b"7-0", {b"data": b"x"})]]]])
    broker = RedisStreamBroker(client, start_id="0")
    client.on_empty = broker.close
    broker.subscribe("t", lambda message: None)
    assert client.reads[0] == {"t": "0"}
    assert client.reads[1] == {"t": b"7-0"}


def test_handler_error_ends_subscription():
    client = FakeRedis(batches=[[[b"t", [(b"1-0", {b"data": b"x"}), (b"2-0", {b"data": b"y"})]]]])
    broker = RedisStreamBroker(client)
    seen = []

    def handler(message):
        seen.append(message)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        broker.subscribe("t", handler)
    assert seen == [b"x"]


def test_entry_without_data_field_is_rejected():
    client = FakeRedis(batches=[[[b"t", [(b"1-0", {b"other": b"x"})]]]])
    broker = RedisStreamBroker(client)
    with pytest.raises(ValueError):
        broker.subscribe("t", lambda message: None)


def test_ping_propagates_failure():
    broker = RedisStreamBroker(FakeRedis(ping_error=ConnectionError("down")))
    with pytest.raises(ConnectionError):
        broker.ping()


def test_subscribe_after_close_reads_nothing():
    client = FakeRedis(batches=[[[b"t", [(b"1-0", {b"data": b"x"})]]]])
    broker = RedisStreamBroker(client)
    broker.close()
    received = []
    broker.subscribe("t", received.append)
    assert received == []
    assert client.reads == []