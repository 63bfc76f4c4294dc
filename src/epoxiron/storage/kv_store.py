"""
Key-value store contract used by the services.

Services receive a store instead of reaching for a module-level list, so the
backing implementation can change without touching them.
"""
import threading
from abc import ABC, abstractmethod
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar('T')


class RecordNotFound(ValueError):
    """No record under the requested id."""


class KeyValueStore(ABC, Generic[T]):
    """Mapping from record id to record."""

    @abstractmethod
    def create(self, key: str, record: T) -> T:
        """Insert a new record; raises ValueError if the key is taken."""

    @abstractmethod
    def get(self, key: str) -> Optional[T]:
        """Return the record or None."""

    @abstractmethod
    def update(self, key: str, record: T) -> T:
        """Replace an existing record; raises RecordNotFound if the key is unknown."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a record. Returns False when there was nothing to remove."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def values(self) -> list[T]:
        """All records in insertion order."""

    def __len__(self) -> int:
        return len(self.values())

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())


class InMemoryStore(KeyValueStore[T]):
    """Dict-backed store. Thread-safe for single operations."""

    def __init__(self):
        self._records: dict[str, T] = {}
        self._lock = threading.RLock()

    def create(self, key: str, record: T) -> T:
        with self._lock:
            if key in self._records:
                raise ValueError(f"Record '{key}' already exists")
            self._records[key] = record
        return record

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._records.get(key)

    def update(self, key: str, record: T) -> T:
        with self._lock:
            if key not in self._records:
                raise RecordNotFound(f"Record '{key}' not found")
            self._records[key] = record
        return record

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._records

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def values(self) -> list[T]:
        with self._lock:
            return list(self._records.values())
