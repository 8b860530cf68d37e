"""
Tests for the fan-out writer.

Verifies per-document isolation, outcome ordering and delete passthrough.
"""

import threading
import time

import pytest

from ingest_gateway.exceptions import StoreError
from ingest_gateway.ingest.writer import FanOutWriter
from ingest_gateway.storage.fallback import InMemoryDocumentStore


class FlakyStore(InMemoryDocumentStore):
    """In-memory store that fails writes for selected ids."""

    def __init__(self, fail_ids=(), crash_ids=()):
        super().__init__()
        self.fail_ids = set(fail_ids)
        self.crash_ids = set(crash_ids)
        self.calls = []
        self._calls_lock = threading.Lock()

    def upsert(self, index_name, document):
        with self._calls_lock:
            self.calls.append(document["id"])
        if document["id"] in self.fail_ids:
            raise StoreError("upsert failed: TIMEOUT")
        if document["id"] in self.crash_ids:
            raise RuntimeError("boom")
        return super().upsert(index_name, document)


class SlowStore(InMemoryDocumentStore):
    """Store whose writes take a while, to observe concurrency."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.peak = 0
        self._gauge_lock = threading.Lock()

    def upsert(self, index_name, document):
        with self._gauge_lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.05)
        with self._gauge_lock:
            self.active -= 1
        return super().upsert(index_name, document)


@pytest.fixture
def make_writer():
    writers = []

    def _make(store, max_workers=4):
        writer = FanOutWriter(store, max_workers=max_workers)
        writers.append(writer)
        return writer

    yield _make
    for writer in writers:
        writer.close()


@pytest.mark.unit
class TestWriteAll:
    """Tests for FanOutWriter.write_all."""

    @pytest.mark.asyncio
    async def test_writes_every_document(self, make_writer):
        store = InMemoryDocumentStore()
        writer = make_writer(store)
        docs = [{"timeout": 30, "id": "timeout"}, {"retries": 3, "id": "retries"}]

        outcomes = await writer.write_all("config", docs)

        assert [o.document_id for o in outcomes] == ["timeout", "retries"]
        assert all(o.ok for o in outcomes)
        assert outcomes[0].response["result"] == "created"
        assert store.documents("config") == {
            "timeout": {"timeout": 30, "id": "timeout"},
            "retries": {"retries": 3, "id": "retries"},
        }

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_later_writes(self, make_writer):
        store = FlakyStore(fail_ids={"b"})
        writer = make_writer(store)
        docs = [{"id": "a"}, {"id": "b"}, {"id": "c"}]

        outcomes = await writer.write_all("rules", docs)

        assert sorted(store.calls) == ["a", "b", "c"]
        assert [o.ok for o in outcomes] == [True, False, True]
        assert isinstance(outcomes[1].error, StoreError)
        assert store.get("rules", "c") == {"id": "c"}

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_store_errors(self, make_writer):
        writer = make_writer(FlakyStore(crash_ids={"x"}))

        outcomes = await writer.write_all("rules", [{"id": "x"}])

        assert isinstance(outcomes[0].error, StoreError)
        assert "boom" in str(outcomes[0].error)

    @pytest.mark.asyncio
    async def test_writes_run_concurrently(self, make_writer):
        store = SlowStore()
        writer = make_writer(store, max_workers=4)

        await writer.write_all("rules", [{"id": str(i)} for i in range(8)])

        assert store.peak > 1
        assert len(store.documents("rules")) == 8

    @pytest.mark.asyncio
    async def test_empty_batch(self, make_writer):
        writer = make_writer(InMemoryDocumentStore())
        assert await writer.write_all("rules", []) == []


@pytest.mark.unit
class TestDeletes:
    """Tests for delete passthrough."""

    @pytest.mark.asyncio
    async def test_delete_by_id(self, make_writer):
        store = InMemoryDocumentStore()
        store.upsert("intents", {"id": "greet"})
        writer = make_writer(store)

        ack = await writer.delete_by_id("intents", "greet")

        assert ack["result"] == "deleted"
        assert store.get("intents", "greet") is None

    @pytest.mark.asyncio
    async def test_delete_missing_raises(self, make_writer):
        writer = make_writer(InMemoryDocumentStore())

        with pytest.raises(StoreError):
            await writer.delete_by_id("intents", "nope")

    @pytest.mark.asyncio
    async def test_delete_index(self, make_writer):
        store = InMemoryDocumentStore()
        store.upsert("intents", {"id": "greet"})
        writer = make_writer(store)

        assert await writer.delete_index("intents") == {"acknowledged": True}
        with pytest.raises(StoreError):
            await writer.delete_index("intents")
