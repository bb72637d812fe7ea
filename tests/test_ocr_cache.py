"""Tests for OcrCacheService hit/miss and invalidation semantics."""

import asyncio

import pytest

from services.document_coordinator.OcrCacheService import OcrCacheService
from shared.clients.dms.DMSExceptions import DMSServerError


@pytest.fixture
def cache(helper_config, dms_client) -> OcrCacheService:
    return OcrCacheService(helper_config=helper_config, dms_client=dms_client)


async def boot(dms_client, backend) -> None:
    await dms_client.boot(transport=backend.transport())
    dms_client.set_token("token-alice")


class TestOcrCache:

    @pytest.mark.asyncio
    async def test_get_after_fetch_makes_no_second_call(self, cache, dms_client, backend) -> None:
        doc = backend.add_document("Scan", "S-1", filename="scan.pdf", file_content=b"hello world")
        await boot(dms_client, backend)

        assert cache.get(doc.id) is None
        fetched = await cache.fetch_and_store(doc.id)
        again = await cache.fetch_and_store(doc.id)

        assert cache.get(doc.id) == fetched == again
        assert fetched.text == "hello world"
        assert len(backend.ocr_text_calls(doc.id)) == 1

    @pytest.mark.asyncio
    async def test_invalidate_forces_new_call(self, cache, dms_client, backend) -> None:
        doc = backend.add_document("Scan", "S-1", filename="scan.pdf", file_content=b"v1")
        await boot(dms_client, backend)
        await cache.fetch_and_store(doc.id)

        cache.invalidate(doc.id)
        assert cache.get(doc.id) is None
        assert not cache.contains(doc.id)

        backend.documents[doc.id].file_content = b"v2"
        assert (await cache.fetch_and_store(doc.id)).text == "v2"
        assert len(backend.ocr_text_calls(doc.id)) == 2

    @pytest.mark.asyncio
    async def test_invalidate_only_touches_one_document(self, cache, dms_client, backend) -> None:
        first = backend.add_document("A", "A-1", filename="a.pdf", file_content=b"a")
        second = backend.add_document("B", "B-1", filename="b.pdf", file_content=b"b")
        await boot(dms_client, backend)
        await cache.fetch_and_store(first.id)
        await cache.fetch_and_store(second.id)

        cache.invalidate_on_update(first.id)

        assert cache.get(first.id) is None
        assert cache.get(second.id).text == "b"

    @pytest.mark.asyncio
    async def test_invalidation_during_fetch_is_not_overwritten(self, cache, dms_client, backend) -> None:
        doc = backend.add_document("Scan", "S-1", filename="scan.pdf", file_content=b"old file")
        await boot(dms_client, backend)
        backend.ocr_gate = asyncio.Event()

        task = asyncio.create_task(cache.fetch_and_store(doc.id))
        while not backend.ocr_text_calls(doc.id):
            await asyncio.sleep(0)
        cache.invalidate(doc.id)
        backend.ocr_gate.set()

        result = await task
        assert result.text == "old file"
        assert cache.get(doc.id) is None

    @pytest.mark.asyncio
    async def test_clear_during_fetch_is_not_overwritten(self, cache, dms_client, backend) -> None:
        doc = backend.add_document("Scan", "S-1", filename="scan.pdf", file_content=b"text")
        await boot(dms_client, backend)
        backend.ocr_gate = asyncio.Event()

        task = asyncio.create_task(cache.fetch_and_store(doc.id))
        while not backend.ocr_text_calls(doc.id):
            await asyncio.sleep(0)
        cache.clear()
        backend.ocr_gate.set()
        await task

        assert cache.get(doc.id) is None

    @pytest.mark.asyncio
    async def test_failed_fetch_stores_nothing(self, cache, dms_client, backend) -> None:
        doc = backend.add_document("Scan", "S-1", filename="scan.pdf", file_content=b"text")
        await boot(dms_client, backend)
        backend.fail("GET", f"/documents/{doc.id}/ocr/text", 500)

        with pytest.raises(DMSServerError):
            await cache.fetch_and_store(doc.id)
        assert cache.get(doc.id) is None
