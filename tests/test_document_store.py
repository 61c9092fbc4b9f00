import pytest

from utils.errors import ConflictError, NotFoundError


async def test_create_then_get_by_id(store):
    created = await store.create("claims", {"id": "CLM-1", "title": "Hail damage"})

    assert created == {"id": "CLM-1", "title": "Hail damage", "version": 1}
    assert await store.get_by_id("claims", "CLM-1", "CLM-1") == created


async def test_get_by_id_missing_returns_none(store):
    assert await store.get_by_id("claims", "nope", "nope") is None


async def test_get_by_id_checks_partition_key(store):
    await store.create("claims", {"id": "CLM-1"})
    assert await store.get_by_id("claims", "other", "CLM-1") is None


async def test_collections_are_isolated(store):
    await store.create("claims", {"id": "X-1"})
    await store.create("invoices", {"id": "X-1", "walletId": "0xabc"})

    assert [r["id"] for r in await store.get_all("claims")] == ["X-1"]
    invoices = await store.get_all("invoices")
    assert invoices[0]["walletId"] == "0xabc"


async def test_duplicate_id_is_a_conflict(store):
    await store.create("claims", {"id": "CLM-1"})
    with pytest.raises(ConflictError):
        await store.create("claims", {"id": "CLM-1"})


async def test_query_filters_on_body_fields(store):
    await store.create("invoices", {"id": "INV-1", "walletId": "0xa"})
    await store.create("invoices", {"id": "INV-2", "walletId": "0xb"})
    await store.create("invoices", {"id": "INV-3", "walletId": "0xa"})

    found = await store.query("invoices", walletId="0xa")
    assert sorted(r["id"] for r in found) == ["INV-1", "INV-3"]


async def test_replace_bumps_version(store):
    await store.create("claims", {"id": "CLM-1", "status": "pending"})

    replaced = await store.replace(
        "claims", "CLM-1", "CLM-1", {"id": "CLM-1", "status": "approved"}, expected_version=1
    )

    assert replaced["version"] == 2
    stored = await store.get_by_id("claims", "CLM-1", "CLM-1")
    assert stored["status"] == "approved"
    assert stored["version"] == 2


async def test_replace_with_stale_version_conflicts(store):
    await store.create("claims", {"id": "CLM-1", "status": "pending"})
    await store.replace("claims", "CLM-1", "CLM-1", {"status": "approved"}, expected_version=1)

    with pytest.raises(ConflictError):
        await store.replace("claims", "CLM-1", "CLM-1", {"status": "denied"}, expected_version=1)

    stored = await store.get_by_id("claims", "CLM-1", "CLM-1")
    assert stored["status"] == "approved"


async def test_replace_missing_document_is_not_found(store):
    with pytest.raises(NotFoundError):
        await store.replace("claims", "CLM-9", "CLM-9", {"status": "paid"}, expected_version=1)


async def test_delete(store):
    await store.create("invoices", {"id": "INV-1"})
    await store.delete("invoices", "INV-1", "INV-1")

    assert await store.get_by_id("invoices", "INV-1", "INV-1") is None
    with pytest.raises(NotFoundError):
        await store.delete("invoices", "INV-1", "INV-1")
