"""Unit tests for RemoteObjectSink and its upload group."""
from __future__ import annotations

import asyncio

import pytest

from backend.src.adapters.outbound.storage.in_memory_object_store import InMemoryObjectStore
from backend.src.adapters.outbound.storage.remote_object_sink import RemoteObjectSink
from backend.src.core.exceptions import PersistenceError
from backend.src.core.value_objects.sequence_slot import SequenceSlot


class FlakyStore(InMemoryObjectStore):
    """Fails the first ``failures[key]`` uploads of each listed key."""

    def __init__(self, failures: dict[str, int], delay: float = 0.0):
        super().__init__()
        self.failures = dict(failures)
        self.delay = delay
        self.attempts: dict[str, int] = {}
        self.in_flight = 0
        self.peak_in_flight = 0

    async def upload_bytes(self, key, data, content_type="image/png"):
        self.attempts[key] = self.attempts.get(key, 0) + 1
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.failures.get(key, 0) > 0:
                self.failures[key] -= 1
                raise ConnectionError(f"503 for {key}")
            return await super().upload_bytes(key, data, content_type)
        finally:
            self.in_flight -= 1


def _key(index: int) -> str:
    return f"input_folder/cat/sequence1/viewA/image{index}.png"


@pytest.fixture
def slot() -> SequenceSlot:
    return SequenceSlot(label="cat", sequence_number=1)


class TestRemoteObjectSink:
    def test_describe(self, memory_store, slot):
        sink = RemoteObjectSink(memory_store)
        assert sink.describe(slot) == "input_folder/cat/sequence1/viewA/"

    def test_rejects_zero_concurrency(self, memory_store):
        with pytest.raises(ValueError):
            RemoteObjectSink(memory_store, max_concurrent_uploads=0)

    @pytest.mark.asyncio
    async def test_uploads_every_frame(self, memory_store, slot, frames):
        session = RemoteObjectSink(memory_store).open(slot)
        for frame in frames:
            await session.write(frame)
        report = await session.close()

        assert report.ok
        assert report.persisted_indices == [1, 2, 3, 4, 5]
        assert memory_store.get(_key(4)) == frames[3].image_bytes
        assert memory_store.content_type(_key(4)) == "image/png"

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self, slot, frames):
        store = FlakyStore({}, delay=0.01)
        session = RemoteObjectSink(store, max_concurrent_uploads=2).open(slot)
        for frame in frames:
            await session.write(frame)
        report = await session.close()

        assert report.ok
        assert store.peak_in_flight <= 2

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self, slot, frames):
        store = FlakyStore({_key(2): 2})
        session = RemoteObjectSink(store, upload_retries=2, retry_backoff_seconds=0).open(slot)
        for frame in frames:
            await session.write(frame)
        report = await session.close()

        assert report.ok
        assert store.attempts[_key(2)] == 3

    @pytest.mark.asyncio
    async def test_close_reports_all_failures(self, slot, frames):
        store = FlakyStore({_key(2): 5, _key(5): 5})
        session = RemoteObjectSink(store, upload_retries=1, retry_backoff_seconds=0).open(slot)
        for frame in frames:
            await session.write(frame)
        report = await session.close()

        assert report.persisted_indices == [1, 3, 4]
        assert report.failed_indices == [2, 5]
        assert "503" in report.failures[0].error

    @pytest.mark.asyncio
    async def test_abort_cancels_in_flight_uploads(self, slot, frames):
        store = FlakyStore({}, delay=10)
        session = RemoteObjectSink(store, max_concurrent_uploads=8).open(slot)
        for frame in frames[:3]:
            await session.write(frame)
        report = await session.abort()

        assert report.persisted_indices == []
        assert report.failed_indices == [1, 2, 3]
        assert all(f.error == "upload cancelled" for f in report.failures)

    @pytest.mark.asyncio
    async def test_rejects_out_of_order_frame(self, memory_store, slot, frames):
        session = RemoteObjectSink(memory_store).open(slot)
        with pytest.raises(PersistenceError):
            await session.write(frames[2])

    @pytest.mark.asyncio
    async def test_write_source(self, memory_store, slot, webm_bytes):
        session = RemoteObjectSink(memory_store).open(slot)
        key = await session.write_source(webm_bytes, "webm")
        report = await session.close()

        assert key == "input_folder/cat/sequence1/input.webm"
        assert memory_store.content_type(key) == "video/webm"
        assert report.source_location == key
