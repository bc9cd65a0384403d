"""
Order Repository

DESIGN DECISION: The repository is the single source of truth for the
order collection. It keeps the whole collection in memory and writes it
back to the key-value store, in full, after every mutation.

- Loading fails open: a missing or unreadable value gives an empty
  collection, and items that cannot be read are skipped one by one. Either
  way the raw value is copied to a recovery key before anything overwrites
  it, and the failure is logged
- Write failures never undo the in-memory change; they are logged and
  exposed through `persistence_warning` for the UI to show
- New records are always prepended, so the newest come first
"""

import json
from typing import Iterable, Optional

from pydantic import ValidationError

from perdcomp.audit import AuditLogger
from perdcomp.config import get_settings
from perdcomp.models.order import FilingRecord
from perdcomp.services.storage import KeyValueStoreInterface, StorageError


PERSISTENCE_WARNING = (
    "Não foi possível salvar os dados localmente. "
    "As alterações ficam disponíveis apenas nesta sessão."
)

RECOVERY_SUFFIX = "_recovery"


class OrderRepository:
    """
    In-memory order collection backed by a key-value store.

    All operations are synchronous and persist immediately.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        key: Optional[str] = None,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._key = key or get_settings().storage.orders_key
        self._orders: list[FilingRecord] = []
        self.persistence_warning: Optional[str] = None
        self.last_persist_error: Optional[str] = None
        self._load()

    # =========================================================================
    # LOAD / PERSIST
    # =========================================================================

    def _load(self) -> None:
        try:
            raw = self._store.get(self._key)
        except StorageError as e:
            self._log_load_failure(str(e))
            return

        if raw is None:
            return

        try:
            data = json.loads(raw)
        except (ValueError, TypeError) as e:
            self._keep_unreadable(raw, str(e))
            return
        if not isinstance(data, list):
            self._keep_unreadable(raw, "stored value is not a JSON array")
            return

        skipped = []
        for position, item in enumerate(data):
            if not isinstance(item, dict):
                skipped.append(position)
                continue
            try:
                self._orders.append(FilingRecord.model_validate(item))
            except ValidationError:
                skipped.append(position)

        if skipped:
            self._keep_unreadable(raw, f"skipped unreadable items at {skipped}")

        if self._audit_logger:
            self._audit_logger.log_store_loaded(self._key, len(self._orders))

    @property
    def recovery_key(self) -> str:
        """Where a stored value we could not fully read is set aside."""
        return f"{self._key}{RECOVERY_SUFFIX}"

    def _keep_unreadable(self, raw: str, message: str) -> None:
        # The next write replaces the whole value, so save the original first
        self._log_load_failure(message)
        try:
            self._store.set(self.recovery_key, raw)
        except StorageError as e:
            self._log_load_failure(f"could not keep a copy under {self.recovery_key}: {e}")

    def _log_load_failure(self, message: str) -> None:
        if self._audit_logger:
            self._audit_logger.log_store_load_failed(self._key, message)

    def _persist(self) -> None:
        payload = json.dumps(
            [order.to_backup_dict() for order in self._orders],
            ensure_ascii=False,
        )
        try:
            self._store.set(self._key, payload)
        except StorageError as e:
            self.last_persist_error = str(e)
            self.persistence_warning = PERSISTENCE_WARNING
            if self._audit_logger:
                self._audit_logger.log_store_write_failed(self._key, str(e))
            return
        self.last_persist_error = None
        self.persistence_warning = None

    # =========================================================================
    # READ
    # =========================================================================

    @property
    def key(self) -> str:
        return self._key

    @property
    def orders(self) -> tuple[FilingRecord, ...]:
        """Read-only view of the collection, newest first."""
        return tuple(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def get(self, order_id: str) -> Optional[FilingRecord]:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def _index_of(self, order_id: str) -> Optional[int]:
        for index, order in enumerate(self._orders):
            if order.id == order_id:
                return index
        return None

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def add(self, record: FilingRecord) -> None:
        """Prepend one record."""
        self._orders.insert(0, record)
        self._persist()
        if self._audit_logger:
            self._audit_logger.log_order_created(record.id, record.filing_number)

    def add_many(self, records: Iterable[FilingRecord]) -> None:
        """Prepend a batch as one block, keeping the batch's own order."""
        batch = list(records)
        self._orders = batch + self._orders
        self._persist()

    def update(self, record: FilingRecord) -> bool:
        """
        Replace the stored record with the same id.

        The stored `imported_at` always wins. Unknown ids are ignored;
        update never inserts. Returns whether a record was replaced.
        """
        index = self._index_of(record.id)
        if index is None:
            return False

        current = self._orders[index]
        updated = record.model_copy(update={"imported_at": current.imported_at})
        self._orders[index] = updated
        self._persist()

        if self._audit_logger:
            changed = [
                name for name in FilingRecord.model_fields
                if getattr(current, name) != getattr(updated, name)
            ]
            self._audit_logger.log_order_updated(record.id, changed)
        return True

    def set_paid(self, order_id: str, is_paid: bool) -> bool:
        index = self._index_of(order_id)
        if index is None:
            return False
        self._orders[index] = self._orders[index].model_copy(update={"is_paid": is_paid})
        self._persist()
        if self._audit_logger:
            self._audit_logger.log_payment_status_updated(order_id, is_paid)
        return True

    def set_bank(self, order_id: str, bank: str) -> bool:
        current = self.get(order_id)
        if current is None:
            return False
        return self.update(current.model_copy(update={"bank": bank or ""}))

    def remove(self, order_id: str) -> bool:
        """Delete a record by id. Unknown ids are ignored."""
        index = self._index_of(order_id)
        if index is None:
            return False
        del self._orders[index]
        self._persist()
        if self._audit_logger:
            self._audit_logger.log_order_deleted(order_id)
        return True

    def replace_all_prepend(self, records: Iterable[FilingRecord]) -> None:
        """
        Put a restored backup in front of the current collection.

        Nothing is deduplicated; restoring the same backup twice
        doubles its records.
        """
        self._orders = list(records) + self._orders
        self._persist()

    def clear(self) -> int:
        """Drop every record. Returns how many were removed."""
        count = len(self._orders)
        self._orders = []
        self._persist()
        if self._audit_logger:
            self._audit_logger.log_collection_cleared(count)
        return count
