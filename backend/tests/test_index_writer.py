import logging

import pytest
from elasticsearch import BadRequestError, ConnectionError as ESConnectionError, NotFoundError

from location_index.models import LocationType
from location_index.services import index_writer
from location_index.services.index_writer import LocationIndexWriter

from conftest import api_error, make_location


class BulkRecorder:
    def __init__(self, errors=None, exc=None):
        self.errors = errors or []
        self.exc = exc
        self.calls = []

    async def __call__(self, client, actions, **kwargs):
        self.calls.append((list(actions), kwargs))
        if self.exc is not None:
            raise self.exc
        return len(self.calls[-1][0]) - len(self.errors), self.errors


@pytest.fixture
def bulk(monkeypatch):
    recorder = BulkRecorder()
    monkeypatch.setattr(index_writer, "async_bulk", recorder)
    return recorder


@pytest.mark.asyncio
async def test_add_indexes_documents_by_ht_id(bulk):
    writer = LocationIndexWriter(es=object())
    locations = [make_location(ht_id="a"), make_location(ht_id="b", location_type=LocationType.LOCALITY)]

    result = await writer.add(locations, "locations-en")

    assert result.is_success
    [(actions, kwargs)] = bulk.calls
    assert [a["_op_type"] for a in actions] == ["index", "index"]
    assert [a["_id"] for a in actions] == ["a", "b"]
    assert {a["_index"] for a in actions} == {"locations-en"}
    assert actions[1]["_source"]["predictionText"] == "Dubai, United Arab Emirates"
    assert kwargs["chunk_size"] == 2
    assert kwargs["raise_on_error"] is False


@pytest.mark.asyncio
async def test_update_sends_partial_documents(bulk):
    writer = LocationIndexWriter(es=object())

    result = await writer.update([make_location(ht_id="a")], "locations-en")

    assert result.is_success
    [action] = bulk.calls[0][0]
    assert action["_op_type"] == "update"
    assert action["_id"] == "a"
    assert action["doc"]["id"] == "a"


@pytest.mark.asyncio
async def test_remove_deletes_by_id(bulk):
    writer = LocationIndexWriter(es=object())

    result = await writer.remove([make_location(ht_id="a"), make_location(ht_id="b")], "locations-en")

    assert result.is_success
    assert bulk.calls[0][0] == [
        {"_op_type": "delete", "_index": "locations-en", "_id": "a"},
        {"_op_type": "delete", "_index": "locations-en", "_id": "b"},
    ]


@pytest.mark.asyncio
async def test_empty_batch_skips_the_request(bulk):
    result = await LocationIndexWriter(es=object()).add([], "locations-en")

    assert result.is_success
    assert bulk.calls == []


@pytest.mark.asyncio
async def test_rejected_items_are_logged_but_batch_succeeds(bulk, caplog):
    bulk.errors = [
        {"index": {"_id": "b", "status": 400, "error": {"type": "mapper_parsing_exception"}}},
    ]
    writer = LocationIndexWriter(es=object())

    with caplog.at_level(logging.ERROR, logger="location_index.index_writer"):
        result = await writer.add([make_location(ht_id="a"), make_location(ht_id="b")], "locations-en")

    assert result.is_success
    assert "Failed to index location b" in caplog.text
    assert "mapper_parsing_exception" in caplog.text


@pytest.mark.asyncio
async def test_transport_failure_fails_the_batch(bulk):
    bulk.exc = ESConnectionError("connection refused")

    result = await LocationIndexWriter(es=object()).add([make_location()], "locations-en")

    assert result.is_failure
    assert "locations-en" in result.error
    assert "connection refused" in result.error


@pytest.mark.asyncio
async def test_rejected_request_fails_the_batch(bulk):
    bulk.exc = api_error(BadRequestError, 400)

    result = await LocationIndexWriter(es=object()).remove([make_location()], "locations-en")

    assert result.is_failure


class FakeDocumentClient:
    def __init__(self, exc=None):
        self.exc = exc
        self.calls = []

    async def _call(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if self.exc is not None:
            raise self.exc
        return {"result": name}

    async def index(self, **kwargs):
        return await self._call("index", **kwargs)

    async def update(self, **kwargs):
        return await self._call("update", **kwargs)

    async def delete(self, **kwargs):
        return await self._call("delete", **kwargs)


@pytest.mark.asyncio
async def test_single_document_operations():
    es = FakeDocumentClient()
    writer = LocationIndexWriter(es)
    loc = make_location(ht_id="one")

    assert (await writer.add_one(loc, "locations-en")).is_success
    assert (await writer.update_one(loc, "locations-en")).is_success
    assert (await writer.remove_one(loc, "locations-en")).is_success

    names = [c[0] for c in es.calls]
    assert names == ["index", "update", "delete"]
    assert es.calls[0][1]["id"] == "one"
    assert es.calls[0][1]["document"]["name"] == "Hilton"
    assert es.calls[1][1]["doc"]["id"] == "one"
    assert es.calls[2][1] == {"index": "locations-en", "id": "one"}


@pytest.mark.asyncio
async def test_single_document_failure_is_reported():
    writer = LocationIndexWriter(FakeDocumentClient(exc=api_error(NotFoundError, 404)))

    result = await writer.remove_one(make_location(ht_id="gone"), "locations-en")

    assert result.is_failure
    assert "gone" in result.error
