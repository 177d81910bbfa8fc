"""Document store: collections of schemaless documents keyed by string id.

Two adapters share one interface, ``SQLDocumentStore`` (SQLModel backed) and
``MemoryDocumentStore``; ``sabalist.dependencies`` picks one at startup.
"""
import copy
import itertools
import logging
import operator
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable

from sqlalchemy import or_
from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import select

from sabalist.database import get_db_session
from sabalist.exceptions import DocumentNotFound
from sabalist.models import Document

logger = logging.getLogger(__name__)

WhereClause = tuple[str, str, Any]
SubscriptionCallback = Callable[[list[dict]], None]


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class Increment:
    amount: int | float = 1


OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda left, right: left in right,
}

TIMESTAMP_COLUMNS = {"createdAt": "created_at", "updatedAt": "updated_at"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_document_id() -> str:
    return uuid.uuid4().hex


def resolve_sentinels(
    changes: dict[str, Any], current: dict[str, Any], now: datetime
) -> dict[str, Any]:
    """Replace SERVER_TIMESTAMP and Increment markers with concrete values."""
    resolved = {}
    for key, value in changes.items():
        if value is SERVER_TIMESTAMP:
            resolved[key] = now.isoformat()
        elif isinstance(value, Increment):
            resolved[key] = (current.get(key) or 0) + value.amount
        else:
            resolved[key] = copy.deepcopy(value)
    return resolved


def matches(data: dict[str, Any], where: Iterable[WhereClause]) -> bool:
    for field, op, expected in where:
        if op not in OPERATORS:
            raise ValueError(f"Unsupported query operator: {op}")
        if field not in data:
            # A missing field only matches an explicit None
            if (op == "==" and expected is None) or (op == "in" and None in expected):
                continue
            return False
        try:
            if not OPERATORS[op](data[field], expected):
                return False
        except TypeError:
            return False
    return True


def sort_by_field(
    rows: list[tuple[str, dict[str, Any]]],
    field: str,
    descending: bool = False,
    tiebreak: Callable[[tuple[str, dict[str, Any]]], Any] | None = None,
) -> list[tuple[str, dict[str, Any]]]:
    """Order (doc_id, data) rows by ``field``. Rows without it always go last."""
    with_field = [row for row in rows if row[1].get(field) is not None]
    without_field = [row for row in rows if row[1].get(field) is None]
    with_field.sort(
        key=lambda row: (row[1][field], tiebreak(row) if tiebreak else 0),
        reverse=descending,
    )
    return with_field + without_field


class DocumentStore(ABC):
    """Create, point read, point update, query and change subscription."""

    def __init__(self):
        self._subscribers: dict[str, list[dict]] = defaultdict(list)

    @abstractmethod
    def add(self, collection: str, data: dict[str, Any]) -> str: ...

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    def query(
        self,
        collection: str,
        where: Iterable[WhereClause] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def subscribe(
        self,
        collection: str,
        callback: SubscriptionCallback,
        where: Iterable[WhereClause] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> Callable[[], None]:
        """Push matching documents to ``callback`` now and after each write.

        Only writes made through this store instance are observed.
        """
        subscription = {
            "callback": callback,
            "where": list(where),
            "order_by": order_by,
            "descending": descending,
            "limit": limit,
        }
        self._subscribers[collection].append(subscription)
        self._push(collection, subscription)

        def unsubscribe():
            if subscription in self._subscribers[collection]:
                self._subscribers[collection].remove(subscription)

        return unsubscribe

    def _notify(self, collection: str) -> None:
        for subscription in list(self._subscribers.get(collection, [])):
            self._push(collection, subscription)

    def _push(self, collection: str, subscription: dict) -> None:
        try:
            results = self.query(
                collection,
                where=subscription["where"],
                order_by=subscription["order_by"],
                descending=subscription["descending"],
                limit=subscription["limit"],
            )
            subscription["callback"](results)
        except Exception:
            logger.exception(f"Subscription callback failed for {collection}")


class MemoryDocumentStore(DocumentStore):
    def __init__(self):
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._sequence = itertools.count()
        self._inserted: dict[tuple[str, str], int] = {}

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._collections[collection][doc_id] = resolve_sentinels(data, {}, utcnow())
        self._inserted.setdefault((collection, doc_id), next(self._sequence))
        self._notify(collection)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._collections.get(collection, {}).get(doc_id)
        if data is None:
            return None
        return {"id": doc_id, **copy.deepcopy(data)}

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        current = self._collections.get(collection, {}).get(doc_id)
        if current is None:
            raise DocumentNotFound(collection, doc_id)
        current.update(resolve_sentinels(changes, current, utcnow()))
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        self._collections.get(collection, {}).pop(doc_id, None)
        self._inserted.pop((collection, doc_id), None)
        self._notify(collection)

    def query(
        self,
        collection: str,
        where: Iterable[WhereClause] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        where = list(where)
        rows = [
            (doc_id, data)
            for doc_id, data in self._collections.get(collection, {}).items()
            if matches(data, where)
        ]
        # Insertion order breaks ties so repeated queries stay stable
        rows.sort(key=lambda row: self._inserted[(collection, row[0])])
        if order_by:
            rows = sort_by_field(
                rows,
                order_by,
                descending,
                tiebreak=lambda row: self._inserted[(collection, row[0])],
            )
        if limit is not None:
            rows = rows[:limit]
        return [{"id": doc_id, **copy.deepcopy(data)} for doc_id, data in rows]


class SQLDocumentStore(DocumentStore):
    """Documents persisted as JSON rows in the ``documents`` table."""

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = new_document_id()
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        now = utcnow()
        with get_db_session() as session:
            existing = session.get(Document, (collection, doc_id))
            payload = resolve_sentinels(data, {}, now)
            if existing:
                existing.data = payload
                existing.updated_at = now
                flag_modified(existing, "data")
                session.add(existing)
            else:
                session.add(
                    Document(
                        collection=collection,
                        doc_id=doc_id,
                        data=payload,
                        created_at=now,
                        updated_at=now,
                    )
                )
        self._notify(collection)

    def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        with get_db_session() as session:
            document = session.get(Document, (collection, doc_id))
            if document is None:
                return None
            return {"id": document.doc_id, **copy.deepcopy(document.data)}

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        now = utcnow()
        found = False
        with get_db_session() as session:
            document = session.get(Document, (collection, doc_id))
            if document is not None:
                found = True
                merged = dict(document.data)
                merged.update(resolve_sentinels(changes, merged, now))
                document.data = merged
                document.updated_at = now
                flag_modified(document, "data")
                session.add(document)
        if not found:
            raise DocumentNotFound(collection, doc_id)
        self._notify(collection)

    def delete(self, collection: str, doc_id: str) -> None:
        with get_db_session() as session:
            document = session.get(Document, (collection, doc_id))
            if document is not None:
                session.delete(document)
        self._notify(collection)

    def query(
        self,
        collection: str,
        where: Iterable[WhereClause] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        statement = select(Document).where(Document.collection == collection)
        for clause in where:
            statement = statement.where(_json_clause(*clause))

        # JSON values have no portable SQL ordering, so other fields sort in Python
        sort_in_python = bool(order_by) and order_by not in TIMESTAMP_COLUMNS
        if order_by in TIMESTAMP_COLUMNS:
            column = getattr(Document, TIMESTAMP_COLUMNS[order_by])
            statement = statement.order_by(
                column.desc() if descending else column.asc(), Document.doc_id
            )
        else:
            statement = statement.order_by(Document.created_at, Document.doc_id)

        if limit is not None and not sort_in_python:
            statement = statement.limit(limit)

        with get_db_session() as session:
            rows = [
                (document.doc_id, copy.deepcopy(document.data))
                for document in session.exec(statement).all()
            ]

        if sort_in_python:
            rows = sort_by_field(rows, order_by, descending)
            if limit is not None:
                rows = rows[:limit]
        return [{"id": doc_id, **data} for doc_id, data in rows]


def _json_clause(field: str, op: str, value: Any):
    if op not in OPERATORS:
        raise ValueError(f"Unsupported query operator: {op}")

    element = Document.data[field]
    if op == "in" and None in value:
        present = [item for item in value if item is not None]
        if not present:
            return element.as_string().is_(None)
        return or_(_json_clause(field, "in", present), element.as_string().is_(None))

    sample = value[0] if op == "in" and value else value
    if sample is None:
        expression = element.as_string()
        if op == "==":
            return expression.is_(None)
        if op == "!=":
            return expression.is_not(None)
        raise ValueError(f"Operator {op} cannot compare against None")
    if isinstance(sample, bool):
        expression = element.as_boolean()
    elif isinstance(sample, (int, float)):
        expression = element.as_float()
    else:
        expression = element.as_string()

    if op == "in":
        return expression.in_(list(value))
    return OPERATORS[op](expression, value)
