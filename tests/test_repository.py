"""Tests for the order repository and its persistence."""

import json
from datetime import datetime

from perdcomp.models.audit import AuditEventType
from perdcomp.models.order import FilingRecord
from perdcomp.repository import OrderRepository
from perdcomp.services.storage import InMemoryKeyValueStore
from perdcomp.utils import utc_now
from tests.conftest import ORDERS_KEY, FailingStore, make_record


def stored(store) -> list[dict]:
    return json.loads(store.get(ORDERS_KEY))


class TestLoad:
    """Loading fails open."""

    def test_absent_key_is_empty(self, repository):
        assert len(repository) == 0

    def test_loads_existing_collection(self, store):
        store.set(ORDERS_KEY, json.dumps([make_record(filing_number="X").to_backup_dict()]))
        repository = OrderRepository(store, key=ORDERS_KEY)
        assert [o.filing_number for o in repository.orders] == ["X"]

    def test_garbage_is_empty_and_logged(self, audit_logger):
        store = InMemoryKeyValueStore({ORDERS_KEY: "{not json"})
        repository = OrderRepository(store, audit_logger=audit_logger, key=ORDERS_KEY)
        assert len(repository) == 0
        assert audit_logger.recent_events()[0].event_type == AuditEventType.STORE_LOAD_FAILED

    def test_non_array_is_empty(self):
        store = InMemoryKeyValueStore({ORDERS_KEY: json.dumps({"a": 1})})
        assert len(OrderRepository(store, key=ORDERS_KEY)) == 0

    def test_unreadable_value_is_kept_before_overwrite(self, store):
        store.set(ORDERS_KEY, "{not json")
        repository = OrderRepository(store, key=ORDERS_KEY)
        repository.add(make_record(filing_number="new"))
        assert store.get(repository.recovery_key) == "{not json"
        assert [o["perDcompNumber"] for o in stored(store)] == ["new"]

    def test_one_bad_item_does_not_lose_the_rest(self, store, audit_logger):
        items = [make_record(filing_number=str(i)).to_backup_dict() for i in range(3)]
        items[1]["transmissionDate"] = "31/02/2024"
        raw = json.dumps(items + [42])
        store.set(ORDERS_KEY, raw)

        repository = OrderRepository(store, audit_logger=audit_logger, key=ORDERS_KEY)
        assert [o.filing_number for o in repository.orders] == ["0", "1", "2"]
        assert store.get(repository.recovery_key) == raw
        assert AuditEventType.STORE_LOAD_FAILED in [
            e.event_type for e in audit_logger.recent_events()
        ]

        repository.add(make_record(filing_number="new"))
        assert [o["perDcompNumber"] for o in stored(store)] == ["new", "0", "1", "2"]

    def test_clean_load_writes_no_recovery_copy(self, store):
        store.set(ORDERS_KEY, json.dumps([make_record().to_backup_dict()]))
        repository = OrderRepository(store, key=ORDERS_KEY)
        assert store.get(repository.recovery_key) is None


class TestMutations:
    """Every mutation is persisted in full."""

    def test_add_prepends_and_persists(self, repository, store):
        first = make_record(filing_number="1")
        second = make_record(filing_number="2")
        repository.add(first)
        repository.add(second)
        assert [o.filing_number for o in repository.orders] == ["2", "1"]
        assert [o["perDcompNumber"] for o in stored(store)] == ["2", "1"]

    def test_add_many_keeps_batch_order(self, repository):
        repository.add(make_record(filing_number="old"))
        repository.add_many([make_record(filing_number="a"), make_record(filing_number="b")])
        assert [o.filing_number for o in repository.orders] == ["a", "b", "old"]

    def test_round_trip_through_store(self, repository, store):
        record = make_record(is_paid=True, bank="Caixa")
        repository.add(record)
        reloaded = OrderRepository(store, key=ORDERS_KEY)
        assert reloaded.get(record.id) == record

    def test_round_trip_with_current_timestamps(self, repository, store):
        repository.add(FilingRecord(filing_number="now", transmission_date=utc_now()))
        reloaded = OrderRepository(store, key=ORDERS_KEY)
        assert list(reloaded.orders) == list(repository.orders)

    def test_update_replaces_and_keeps_imported_at(self, repository):
        record = make_record(status="Em análise")
        repository.add(record)
        edited = record.model_copy(update={
            "status": "Deferido",
            "imported_at": datetime(2000, 1, 1),
        })
        assert repository.update(edited) is True
        current = repository.get(record.id)
        assert current.status == "Deferido"
        assert current.imported_at == record.imported_at

    def test_update_unknown_id_never_inserts(self, repository):
        assert repository.update(make_record()) is False
        assert len(repository) == 0

    def test_set_paid(self, repository, audit_logger):
        record = make_record()
        repository.add(record)
        assert repository.set_paid(record.id, True) is True
        assert repository.get(record.id).is_paid is True
        assert audit_logger.recent_events()[0].event_type == AuditEventType.PAYMENT_STATUS_UPDATED

    def test_set_bank(self, repository):
        record = make_record()
        repository.add(record)
        repository.set_bank(record.id, "Santander")
        assert repository.get(record.id).bank == "Santander"

    def test_set_paid_unknown_id(self, repository):
        assert repository.set_paid("missing", True) is False

    def test_remove(self, repository, store):
        keep = make_record(filing_number="keep")
        drop = make_record(filing_number="drop")
        repository.add_many([keep, drop])
        assert repository.remove(drop.id) is True
        assert [o["perDcompNumber"] for o in stored(store)] == ["keep"]

    def test_remove_unknown_id(self, repository):
        repository.add(make_record())
        assert repository.remove("missing") is False
        assert len(repository) == 1

    def test_replace_all_prepend_does_not_dedupe(self, repository):
        record = make_record(filing_number="dup")
        repository.add(record)
        repository.replace_all_prepend([record, make_record(filing_number="new")])
        assert [o.filing_number for o in repository.orders] == ["dup", "new", "dup"]

    def test_clear(self, repository, store):
        repository.add_many([make_record(), make_record()])
        assert repository.clear() == 2
        assert len(repository) == 0
        assert stored(store) == []

    def test_orders_is_read_only_view(self, repository):
        repository.add(make_record())
        assert isinstance(repository.orders, tuple)


class TestPersistenceFailure:
    """A failed write is a warning; the change stays in memory."""

    def test_warning_set_and_change_kept(self, audit_logger):
        repository = OrderRepository(FailingStore(), audit_logger=audit_logger, key=ORDERS_KEY)
        repository.add(make_record())
        assert len(repository) == 1
        assert repository.persistence_warning
        assert repository.last_persist_error == "disk full"
        types = [e.event_type for e in audit_logger.recent_events()]
        assert AuditEventType.STORE_WRITE_FAILED in types

    def test_warning_cleared_after_successful_write(self):
        store = FailingStore()
        repository = OrderRepository(store, key=ORDERS_KEY)
        repository.add(make_record())
        assert repository.persistence_warning

        # Storage recovers
        store.set = lambda key, value: InMemoryKeyValueStore.set(store, key, value)
        repository.add(make_record())
        assert repository.persistence_warning is None
