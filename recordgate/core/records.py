"""Record store interface and the in-memory implementation.

Collections and records are owned by the store; the handlers only read
them. Lookups raise ``RecordNotFoundError`` when nothing matches.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

COLLECTION_TYPES = ("auth", "base", "view")

# Fields never exported in API responses
HIDDEN_FIELDS = frozenset({"password", "tokenKey"})


class RecordNotFoundError(LookupError):
    """Raised when a collection or record lookup has no match."""


@dataclass
class Collection:
    """Schema-bearing collection."""

    id: str
    name: str
    type: str = "base"
    fields: List[str] = field(default_factory=list)

    def is_auth(self) -> bool:
        return self.type == "auth"

    def has_field(self, name: str) -> bool:
        return name in self.fields


@dataclass
class Record:
    """Single record belonging to a collection."""

    id: str
    collection_id: str
    collection_name: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, field_name: str) -> Any:
        return self.data.get(field_name)

    def export(self) -> Dict[str, Any]:
        """Public representation of the record (hidden fields removed)."""
        exported = {
            "id": self.id,
            "collectionId": self.collection_id,
            "collectionName": self.collection_name,
        }
        for key, value in self.data.items():
            if key in HIDDEN_FIELDS or key in exported:
                continue
            exported[key] = value
        return exported


class RecordStore(Protocol):
    """Read side of the record store used by the handlers."""

    async def connect(self) -> bool: ...

    async def disconnect(self) -> None: ...

    async def find_collection_by_name_or_id(self, name_or_id: str) -> Collection: ...

    async def find_first_record_by_data(self, collection: Collection, field_name: str, value: Any) -> Record: ...


def new_id() -> str:
    """Generate a 15-char lowercase record/collection id."""
    return uuid.uuid4().hex[:15]


class InMemoryRecordStore:
    """Dict-backed record store.

    Used by the test suite and when the service runs without DATABASE_URL.
    """

    def __init__(self):
        self._collections: Dict[str, Collection] = {}
        self._records: Dict[str, List[Record]] = {}

    async def connect(self) -> bool:
        return True

    async def disconnect(self) -> None:
        return None

    def add_collection(
        self,
        name: str,
        type: str = "base",
        fields: Optional[List[str]] = None,
        id: Optional[str] = None,
    ) -> Collection:
        if type not in COLLECTION_TYPES:
            raise ValueError(f"Unknown collection type: {type}")
        collection = Collection(id=id or new_id(), name=name, type=type, fields=list(fields or []))
        self._collections[collection.id] = collection
        self._records.setdefault(collection.id, [])
        return collection

    def add_record(self, collection: Collection, data: Dict[str, Any], id: Optional[str] = None) -> Record:
        unknown = [key for key in data if not collection.has_field(key)]
        if unknown:
            raise ValueError(f"Unknown fields for collection {collection.name}: {', '.join(unknown)}")
        record = Record(
            id=id or new_id(),
            collection_id=collection.id,
            collection_name=collection.name,
            data=dict(data),
        )
        self._records.setdefault(collection.id, []).append(record)
        return record

    async def find_collection_by_name_or_id(self, name_or_id: str) -> Collection:
        collection = self._collections.get(name_or_id)
        if collection is None:
            collection = next((c for c in self._collections.values() if c.name == name_or_id), None)
        if collection is None:
            raise RecordNotFoundError(f"Collection not found: {name_or_id}")
        return collection

    async def find_first_record_by_data(self, collection: Collection, field_name: str, value: Any) -> Record:
        for record in self._records.get(collection.id, []):
            if field_name in record.data and record.data[field_name] == value:
                return record
        raise RecordNotFoundError(f"No {collection.name} record with {field_name}={value!r}")
