# farmtrack/identity.py
from typing import Any, Iterable, Mapping


def _record_id(record: Any) -> int:
    if isinstance(record, Mapping):
        return int(record["Id"] if "Id" in record else record["id"])
    return int(record.id)


def next_id(records: Iterable[Any]) -> int:
    """
    Next identity for a record kind: one past the largest Id present, or 1.

    Computed from what currently exists rather than a counter, so deleting
    the highest record makes its Id available again while lower gaps stay.
    """
    return max((_record_id(r) for r in records), default=0) + 1
