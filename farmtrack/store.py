# farmtrack/store.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, Union

import pydantic
from pydantic import BaseModel

from farmtrack import schemas
from farmtrack.errors import NotFoundError, StorageIOError, ValidationError
from farmtrack.identity import next_id
from farmtrack.medium import PersistedMedium

logger = logging.getLogger(__name__)

FARMS_KEY = "farmtrack_farms"
CROPS_KEY = "farmtrack_crops"
TASKS_KEY = "farmtrack_tasks"
EXPENSES_KEY = "farmtrack_expenses"

T = TypeVar("T", bound=schemas.Record)
Clock = Callable[[], datetime]
Payload = Union[BaseModel, Mapping[str, Any]]

# owned by the store; never taken from a payload
_STORE_FIELDS = ("id", "created_at")


# ---------- tiny, single-purpose helpers ----------

def _coerce_id(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _field_lookup(model: Type[BaseModel]) -> Dict[str, str]:
    """Map both attribute names and wire aliases to attribute names."""
    lookup: Dict[str, str] = {}
    for name, field in model.model_fields.items():
        lookup[name] = name
        if field.alias:
            lookup[field.alias] = name
    return lookup


def _validation_errors(e: pydantic.ValidationError) -> list:
    return e.errors(include_url=False, include_context=False, include_input=False)


# ---------- store ----------

class EntityStore(Generic[T]):
    """
    Durable CRUD for one record kind.

    The whole collection lives under a single key of the persisted medium as
    a JSON list. Every read decodes a fresh list of models, so callers never
    hold references into stored state. Mutations are read-modify-write under
    a per-store lock and land in the medium with one `set` call.
    """

    def __init__(
        self,
        medium: PersistedMedium,
        key: str,
        model: Type[T],
        *,
        kind: str | None = None,
        seed: Iterable[Mapping[str, Any]] | None = None,
        clock: Clock | None = None,
    ):
        self._medium = medium
        self.key = key
        self.model = model
        self.kind = kind or model.__name__
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()
        self._fields = _field_lookup(model)
        if seed is not None:
            self._seed(seed)

    # ---------- medium I/O ----------

    def _load(self) -> List[T]:
        raw = self._medium.get(self.key)
        if raw is None:
            return []
        try:
            rows = json.loads(raw)
            if not isinstance(rows, list):
                raise ValueError(f"expected a JSON list, got {type(rows).__name__}")
            return [self.model.model_validate(row) for row in rows]
        except (ValueError, pydantic.ValidationError) as e:
            logger.error(f"Stored {self.kind} data under {self.key!r} is unreadable: {e}")
            raise StorageIOError(f"Corrupt {self.kind} data under {self.key!r}: {e}") from e

    def _write(self, records: List[T]) -> None:
        rows = [r.model_dump(mode="json", by_alias=True) for r in records]
        self._medium.set(self.key, json.dumps(rows))

    def _seed(self, seed: Iterable[Mapping[str, Any]]) -> None:
        with self._lock:
            if self._medium.get(self.key) is not None:
                return
            records = [self._validate(row) for row in seed]
            self._write(records)
        logger.info(f"Seeded {len(records)} {self.kind} record(s) under {self.key!r}")

    # ---------- payload handling ----------

    def _payload_fields(self, payload: Payload, *, partial: bool) -> Dict[str, Any]:
        if isinstance(payload, BaseModel):
            raw = payload.model_dump(exclude_unset=partial)
        elif isinstance(payload, Mapping):
            raw = dict(payload)
        else:
            raise ValidationError(f"{self.kind} payload must be a mapping or a model, got {type(payload).__name__}")
        data = {self._fields[k]: v for k, v in raw.items() if k in self._fields}
        for name in _STORE_FIELDS:
            data.pop(name, None)
        return data

    def _validate(self, data: Mapping[str, Any]) -> T:
        try:
            return self.model.model_validate(data)
        except pydantic.ValidationError as e:
            raise ValidationError(
                f"Invalid {self.kind} payload: {e.error_count()} error(s)",
                errors=_validation_errors(e),
            ) from e

    def _index_of(self, records: List[T], record_id: Any) -> int:
        rid = _coerce_id(record_id)
        for i, r in enumerate(records):
            if r.id == rid:
                return i
        raise NotFoundError(self.kind, record_id)

    def _prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def _prepare_update(self, current: T, changes: Dict[str, Any]) -> Dict[str, Any]:
        return changes

    # ---------- reads ----------

    def get_all(self) -> List[T]:
        return self._load()

    def get_by_id(self, record_id: Any) -> Optional[T]:
        rid = _coerce_id(record_id)
        if rid is None:
            return None
        return next((r for r in self._load() if r.id == rid), None)

    def get_by_farm_id(self, farm_id: Any) -> List[T]:
        if "farm_id" not in self.model.model_fields:
            raise TypeError(f"{self.kind} records carry no farm_id")
        fid = _coerce_id(farm_id)
        return [r for r in self._load() if r.farm_id == fid]

    # ---------- writes ----------

    def create(self, payload: Payload) -> T:
        data = self._payload_fields(payload, partial=False)
        with self._lock:
            records = self._load()
            data = self._prepare_create(data)
            data["id"] = next_id(records)
            data["created_at"] = self._clock()
            record = self._validate(data)
            records.append(record)
            self._write(records)
        logger.info(f"Created {self.kind} {record.id}")
        return record

    def update(self, record_id: Any, partial: Payload) -> T:
        changes = self._payload_fields(partial, partial=True)
        with self._lock:
            records = self._load()
            index = self._index_of(records, record_id)
            current = records[index]
            changes = self._prepare_update(current, changes)
            merged = {**current.model_dump(), **changes, "id": current.id, "created_at": current.created_at}
            record = self._validate(merged)
            records[index] = record
            self._write(records)
        logger.info(f"Updated {self.kind} {record.id}: {sorted(changes)}")
        return record

    def delete(self, record_id: Any) -> bool:
        with self._lock:
            records = self._load()
            index = self._index_of(records, record_id)
            removed = records.pop(index)
            self._write(records)
        logger.info(f"Deleted {self.kind} {removed.id}")
        return True


class TaskStore(EntityStore[schemas.Task]):
    """
    Task records start open. Completing a task stamps `completed_at` unless
    the payload carries one; reopening it clears the stamp, so `completed_at`
    is present exactly when `completed` is true.
    """

    def _prepare_create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {**data, "completed": False, "completed_at": None}

    def _prepare_update(self, current: schemas.Task, changes: Dict[str, Any]) -> Dict[str, Any]:
        completed = changes.get("completed")
        if completed is True:
            stamp = changes.get("completed_at") or (current.completed_at if current.completed else None)
            return {**changes, "completed_at": stamp or self._clock()}
        if completed is False:
            return {**changes, "completed_at": None}
        return changes

    def complete(self, record_id: Any) -> schemas.Task:
        return self.update(record_id, {"completed": True})


# ---------- factories ----------

def farm_store(medium: PersistedMedium, **kwargs) -> EntityStore[schemas.Farm]:
    return EntityStore(medium, FARMS_KEY, schemas.Farm, kind="Farm", **kwargs)


def crop_store(medium: PersistedMedium, **kwargs) -> EntityStore[schemas.Crop]:
    return EntityStore(medium, CROPS_KEY, schemas.Crop, kind="Crop", **kwargs)


def task_store(medium: PersistedMedium, **kwargs) -> TaskStore:
    return TaskStore(medium, TASKS_KEY, schemas.Task, kind="Task", **kwargs)


def expense_store(medium: PersistedMedium, **kwargs) -> EntityStore[schemas.Expense]:
    return EntityStore(medium, EXPENSES_KEY, schemas.Expense, kind="Expense", **kwargs)


@dataclass
class Stores:
    farms: EntityStore[schemas.Farm]
    crops: EntityStore[schemas.Crop]
    tasks: TaskStore
    expenses: EntityStore[schemas.Expense]


def build_stores(
    medium: PersistedMedium,
    *,
    clock: Clock | None = None,
    seed: Mapping[str, Iterable[Mapping[str, Any]]] | None = None,
) -> Stores:
    """Build the four stores; `seed` maps "farms", "crops", "tasks" or "expenses" to initial records."""
    seed = seed or {}
    return Stores(
        farms=farm_store(medium, clock=clock, seed=seed.get("farms")),
        crops=crop_store(medium, clock=clock, seed=seed.get("crops")),
        tasks=task_store(medium, clock=clock, seed=seed.get("tasks")),
        expenses=expense_store(medium, clock=clock, seed=seed.get("expenses")),
    )
