"""
JSON Backup and Restore

The backup is the whole collection as a JSON array with the camelCase keys
the store uses, indented by two spaces.

Restore is loose about the records themselves: missing or unreadable fields
get the record defaults (a bad date becomes now, a bad paid flag becomes
unpaid), ids are not checked and nothing is deduplicated. Only the shape is
enforced: the document must be a JSON array of objects. Anything else is
rejected before the collection is touched.
"""

import json
from typing import Iterable

from pydantic import ValidationError

from perdcomp.exporters.errors import BackupParseError
from perdcomp.models.order import FilingRecord


INVALID_BACKUP_MESSAGE = "Arquivo de backup inválido. O arquivo deve conter uma lista de pedidos."


def export_backup(orders: Iterable[FilingRecord]) -> str:
    """Serialize the collection as a backup document."""
    return json.dumps(
        [order.to_backup_dict() for order in orders],
        ensure_ascii=False,
        indent=2,
    )


def parse_backup(text: str) -> list[FilingRecord]:
    """
    Parse a backup document into records.

    Raises:
        BackupParseError: invalid JSON, a top level that is not an array,
            or an element that is not an object
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise BackupParseError(f"{INVALID_BACKUP_MESSAGE} ({e})")

    if not isinstance(data, list):
        raise BackupParseError(INVALID_BACKUP_MESSAGE)

    records = []
    for position, item in enumerate(data):
        if not isinstance(item, dict):
            raise BackupParseError(
                f"{INVALID_BACKUP_MESSAGE} (item {position} não é um objeto)"
            )
        try:
            records.append(FilingRecord.model_validate(item))
        except ValidationError as e:
            raise BackupParseError(
                f"{INVALID_BACKUP_MESSAGE} (item {position}: {e.error_count()} erro(s))"
            )
    return records
