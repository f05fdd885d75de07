# farmtrack/medium.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from farmtrack import models
from farmtrack.errors import StorageIOError

logger = logging.getLogger(__name__)


class PersistedMedium(Protocol):
    def get(self, key: str) -> Optional[str]:
        """Return the text stored under `key`, or None if nothing is."""
        ...

    def set(self, key: str, value: str) -> None:
        """Replace the whole entry stored under `key`."""
        ...


class SqlMedium(PersistedMedium):
    """Key/value entries kept in the `kv_store` table, one row per key."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as db:
                row = db.get(models.KVEntry, key)
                return row.value if row else None
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to read {key!r} from storage: {e}")
            raise StorageIOError(f"Failed to read {key!r}: {e}") from e

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(models.KVEntry, key)
                if row is None:
                    db.add(models.KVEntry(key=key, value=value, updated_at=datetime.now(timezone.utc)))
                else:
                    row.value = value
                    row.updated_at = datetime.now(timezone.utc)
                db.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Failed to write {key!r} to storage: {e}")
            raise StorageIOError(f"Failed to write {key!r}: {e}") from e


class MemoryMedium(PersistedMedium):
    """Process-local medium; nothing survives the process."""

    def __init__(self, initial: Dict[str, str] | None = None):
        self._entries: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value
