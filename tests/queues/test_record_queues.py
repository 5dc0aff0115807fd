from __future__ import annotations

import asyncio

import pytest

from resq.queues import (
    InMemoryRecordQueue,
    RedisRecordQueue,
    SQLiteRecordQueue,
    create_record_queue_from_env,
)


def run_async(coro):
    return asyncio.run(coro)


class FakeRedis:
    """Just enough of `redis.asyncio.Redis` for the record queue."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[str, str]] = {}
        self.lists: dict[str, list[str]] = {}
        self.closed = False

    async def hset(self, key, field, value):
        bucket = self.hashes.setdefault(key, {})
        added = field not in bucket
        bucket[field] = value
        return 1 if added else 0

    async def hget(self, key, field):
        return self.hashes.get(key, {}).get(field)

    async def hmget(self, key, fields):
        bucket = self.hashes.get(key, {})
        return [bucket.get(f) for f in fields]

    async def hdel(self, key, field):
        return 1 if self.hashes.get(key, {}).pop(field, None) is not None else 0

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def lrem(self, key, count, value):
        items = self.lists.get(key, [])
        self.lists[key] = [v for v in items if v != value]

    async def lrange(self, key, start, end):
        return list(self.lists.get(key, []))

    async def aclose(self):
        self.closed = True


@pytest.fixture(params=["inmemory", "sqlite", "redis"])
def make_queue(request, tmp_path):
    def factory():
        if request.param == "inmemory":
            return InMemoryRecordQueue()
        if request.param == "sqlite":
            return SQLiteRecordQueue(str(tmp_path / "queue.sqlite3"))
        return RedisRecordQueue(FakeRedis(), prefix="test:queue")

    return factory


def test_records_drain_in_creation_order(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        a = await queue.enqueue({"n": 1})
        b = await queue.enqueue({"n": 2})
        c = await queue.enqueue({"n": 3})

        records = await queue.dequeue_all()

        assert [r.id for r in records] == [a, b, c]
        assert [r.payload["n"] for r in records] == [1, 2, 3]
        assert all(r.status == "queued" and r.retry_count == 0 for r in records)
        assert await queue.count() == 3
        await queue.close()

    run_async(scenario())


def test_claimed_records_are_excluded_until_failed(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        a = await queue.enqueue({"n": 1})
        b = await queue.enqueue({"n": 2})

        claimed = await queue.claim(a)
        assert claimed is not None
        assert claimed.status == "in_flight"
        assert claimed.last_attempt_at is not None
        assert await queue.claim(a) is None
        assert [r.id for r in await queue.dequeue_all()] == [b]

        failed = await queue.mark_failed(a, error="HTTP 500")
        assert failed is not None
        assert failed.retry_count == 1
        assert failed.status == "failed"
        assert failed.last_error == "HTTP 500"

        # A failed record keeps its original position.
        assert [r.id for r in await queue.dequeue_all()] == [a, b]
        await queue.close()

    run_async(scenario())


def test_enqueue_with_existing_id_is_noop(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        first = await queue.enqueue({"type": "fire"}, record_id="em-1")
        second = await queue.enqueue({"type": "flood"}, record_id="em-1")

        assert first == second == "em-1"
        assert await queue.count() == 1
        record = await queue.get("em-1")
        assert record is not None and record.payload == {"type": "fire"}
        await queue.close()

    run_async(scenario())


def test_remove_and_kind_filters(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        emergency = await queue.enqueue({"type": "fire"}, kind="emergency")
        ping = await queue.enqueue({"lat": 1.0, "lng": 2.0}, kind="location")

        assert [r.id for r in await queue.dequeue_all(kind="location")] == [ping]
        assert await queue.count(kind="emergency") == 1

        assert await queue.remove(emergency) is True
        assert await queue.remove(emergency) is False
        assert await queue.get(emergency) is None
        assert [r.id for r in await queue.list_records()] == [ping]
        await queue.close()

    run_async(scenario())


def test_recover_in_flight_requeues_interrupted_records(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        a = await queue.enqueue({"n": 1})
        await queue.claim(a)
        assert [r.id for r in await queue.list_records(status="in_flight")] == [a]

        assert await queue.recover_in_flight() == 1
        record = await queue.get(a)
        assert record is not None and record.status == "queued"
        assert await queue.recover_in_flight() == 0
        await queue.close()

    run_async(scenario())


def test_release_returns_claimed_record_without_counting_attempt(make_queue):
    async def scenario() -> None:
        queue = make_queue()
        a = await queue.enqueue({"n": 1})
        assert await queue.release(a) is False

        await queue.claim(a)
        assert await queue.release(a) is True

        record = await queue.get(a)
        assert record is not None
        assert record.status == "queued"
        assert record.retry_count == 0
        assert [r.id for r in await queue.dequeue_all()] == [a]
        await queue.close()

    run_async(scenario())


def test_sqlite_queue_survives_restart(tmp_path):
    async def scenario() -> None:
        path = str(tmp_path / "queue.sqlite3")
        first = SQLiteRecordQueue(path)
        a = await first.enqueue({"type": "fire", "location": {"lat": 1.5}})
        b = await first.enqueue({"type": "medical"})
        await first.mark_failed(a, error="offline")
        await first.close()

        second = SQLiteRecordQueue(path)
        records = await second.dequeue_all()
        assert [r.id for r in records] == [a, b]
        assert records[0].retry_count == 1
        assert records[0].payload == {"type": "fire", "location": {"lat": 1.5}}
        await second.close()

    run_async(scenario())


def test_redis_queue_closes_client():
    async def scenario() -> None:
        client = FakeRedis()
        queue = RedisRecordQueue(client, prefix="p")
        await queue.enqueue({"n": 1})
        assert list(client.hashes) == ["p:records"]
        assert list(client.lists) == ["p:order"]
        await queue.close()
        assert client.closed is True

    run_async(scenario())


def test_factory_selects_backend_from_env(monkeypatch, tmp_path):
    monkeypatch.delenv("RESQ_QUEUE_BACKEND", raising=False)
    assert isinstance(create_record_queue_from_env(), InMemoryRecordQueue)

    monkeypatch.setenv("RESQ_QUEUE_BACKEND", "sqlite")
    monkeypatch.setenv("RESQ_QUEUE_SQLITE_PATH", str(tmp_path / "q.sqlite3"))
    queue = create_record_queue_from_env()
    assert isinstance(queue, SQLiteRecordQueue)
    assert queue.path == str(tmp_path / "q.sqlite3")

    monkeypatch.setenv("RESQ_QUEUE_BACKEND", "redis")
    assert isinstance(create_record_queue_from_env(redis_client=FakeRedis()), RedisRecordQueue)

    monkeypatch.setenv("RESQ_QUEUE_BACKEND", "kafka")
    with pytest.raises(ValueError, match="Unknown RESQ_QUEUE_BACKEND"):
        create_record_queue_from_env()


def test_sqlite_queue_opens_one_connection_under_concurrent_first_use(monkeypatch, tmp_path):
    aiosqlite = pytest.importorskip("aiosqlite")
    real_connect = aiosqlite.connect
    opened: list[str] = []

    def counting_connect(path, *args, **kwargs):
        opened.append(path)
        return real_connect(path, *args, **kwargs)

    monkeypatch.setattr(aiosqlite, "connect", counting_connect)

    async def scenario() -> None:
        queue = SQLiteRecordQueue(str(tmp_path / "queue.sqlite3"))
        results = await asyncio.gather(*(queue.dequeue_all() for _ in range(5)))

        assert results == [[]] * 5
        assert len(opened) == 1
        await queue.close()

    run_async(scenario())
