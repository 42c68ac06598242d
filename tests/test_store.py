from datetime import datetime

import pytest

from app.db.schema import (
    Stakeholder, Product, TrackingRecord, RegistryState, ProvenanceEvent, EventType, Stage
)

NOW = datetime(2024, 3, 1, 9, 30, 0)


def make_product(handle="0xabc"):
    return Product(handle=handle, product_code="SKU-1", name="T-Shirt",
                   current_stage=Stage.RAW_MATERIAL, created_at=NOW, created_by="mill")


def make_record(handle, sequence, stage=Stage.RAW_MATERIAL):
    return TrackingRecord(product_handle=handle, sequence=sequence, stage=stage,
                          handler="mill", timestamp=NOW, carbon_footprint=10)


def test_keyed_get_put_contains(store):
    assert not store.has_stakeholder("mill")
    assert not store.has_product("0xabc")

    with store.transaction():
        store.put_stakeholder(Stakeholder(principal="mill", role="Manufacturer"))
        store.put_product(make_product())
        store.append_record(make_record("0xabc", 0))
        store.append_record(make_record("0xabc", 1, Stage.QUALITY))
        store.put_registry_state(RegistryState(admin_principal="admin", product_count=1))

    assert store.has_stakeholder("mill")
    assert store.get_stakeholder("mill").role == "Manufacturer"
    assert store.has_product("0xabc")
    assert store.journey_length("0xabc") == 2
    assert [r.stage for r in store.get_journey("0xabc")] == [Stage.RAW_MATERIAL, Stage.QUALITY]
    assert store.get_journey("0xother") == []
    assert store.get_registry_state().product_count == 1


def test_transaction_discards_writes_on_error(store):
    with pytest.raises(ValueError):
        with store.transaction():
            store.put_stakeholder(Stakeholder(principal="mill", role="Manufacturer"))
            store.put_product(make_product())
            store.append_record(make_record("0xabc", 0))
            store.add_event(ProvenanceEvent(event_type=EventType.STAKEHOLDER_REVOKED,
                                            payload={"principal": "mill"}))
            raise ValueError("abort")

    assert not store.has_stakeholder("mill")
    assert not store.has_product("0xabc")
    assert store.journey_length("0xabc") == 0
    assert store.list_events() == []


def test_events_are_paged_by_id(store):
    with store.transaction():
        for i in range(5):
            store.add_event(ProvenanceEvent(event_type=EventType.STAKEHOLDER_REVOKED,
                                            payload={"principal": f"p{i}"}))

    events = store.list_events()
    ids = [e.id for e in events]
    assert ids == sorted(ids) and len(ids) == 5

    page = store.list_events(after_id=ids[1], limit=2)
    assert [e.payload["principal"] for e in page] == ["p2", "p3"]


def test_returned_rows_are_not_live_in_memory():
    from app.db.store import InMemoryStore

    store = InMemoryStore()
    store.put_product(make_product())
    product = store.get_product("0xabc")
    product.current_stage = Stage.SOLD

    assert store.get_product("0xabc").current_stage == Stage.RAW_MATERIAL


def test_delete_stakeholder(store):
    with store.transaction():
        store.put_stakeholder(Stakeholder(principal="mill", role="Manufacturer"))
    with store.transaction():
        store.delete_stakeholder("mill")
        store.delete_stakeholder("never-existed")

    assert store.list_stakeholders() == []
