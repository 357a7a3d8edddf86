"""
Entity store facade.

Exposes single and multi get/put/delete, query iteration, id allocation and
transactions over a document store. Records are plain JSON dicts; the
repositories in each module map them to entity models.

The active transaction lives in a context variable, so writes performed
while a transaction is open join it automatically. Reads stay outside the
transaction unless the caller asks for a transactional read. Entities carry
the version they were loaded at; a transactional write of an entity that
changed in the meantime fails the commit with TransactionConflictError.
Work registered with after_commit runs only once the transaction commits.
"""

import copy
import functools
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel

from .exceptions import ConvoError
from .keys import Key

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_TRANSACTION_ATTEMPTS = 3


class TransactionConflictError(ConvoError):
    """Raised when a commit observes a concurrent modification."""

    def __init__(self, key: Optional[Key] = None):
        super().__init__(
            f"Transaction conflict on {key}" if key else "Transaction conflict",
            code="TRANSACTION_CONFLICT",
            details={"key": str(key)} if key else {},
        )


class TransactionClosedError(ConvoError):
    """Raised when a committed or rolled back transaction is reused."""

    def __init__(self):
        super().__init__("Transaction is no longer pending", code="TRANSACTION_CLOSED")


def to_json_value(value: Any) -> Any:
    """Convert a Python value to the form it has inside a stored record."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, datetime):
        return value.isoformat()
    return value


@dataclass
class Record:
    """A stored document with its key and version."""

    key: Key
    data: dict[str, Any]
    version: int


@dataclass
class Filter:
    field: str
    op: str
    value: Any


@dataclass
class Query:
    """
    Query over one entity kind.

    Supports equality on scalar fields, membership on list fields, a single
    sort field and offset/limit paging.
    """

    kind: str
    filters: list[Filter] = field(default_factory=list)
    order_by: Optional[str] = None
    descending: bool = False
    offset: int = 0
    limit: Optional[int] = None

    def where(self, name: str, value: Any) -> "Query":
        self.filters.append(Filter(name, "=", to_json_value(value)))
        return self

    def where_contains(self, name: str, value: Any) -> "Query":
        self.filters.append(Filter(name, "contains", to_json_value(value)))
        return self

    def order(self, name: str, descending: bool = False) -> "Query":
        self.order_by = name
        self.descending = descending
        return self

    def page(self, offset: int, limit: Optional[int]) -> "Query":
        self.offset = offset
        self.limit = limit
        return self


@dataclass
class Write:
    """A buffered put (data set) or delete (data None)."""

    data: Optional[dict[str, Any]]
    expected_version: Optional[int] = None


_current_transaction: ContextVar[Optional["Transaction"]] = ContextVar(
    "convo_transaction", default=None
)
_request_transactions: ContextVar[Optional[list["Transaction"]]] = ContextVar(
    "convo_request_transactions", default=None
)


def current_transaction() -> Optional["Transaction"]:
    """Return the transaction open in the current context, if any."""
    tx = _current_transaction.get()
    if tx is not None and tx.pending:
        return tx
    return None


class Transaction:
    """
    Buffered writes applied atomically on commit.

    ``pending`` stays True until the transaction is committed or rolled
    back, which lets the request scope detect leaked transactions.
    """

    def __init__(self, store: "Datastore"):
        self._store = store
        self._writes: dict[Key, Write] = {}
        self._read_versions: dict[Key, int] = {}
        self._on_commit: list[Callable[[], Awaitable[None]]] = []
        self.pending = True

    def _ensure_open(self) -> None:
        if not self.pending:
            raise TransactionClosedError()

    async def get(self, key: Key) -> Optional[Record]:
        """Read through the transaction, observing its own buffered writes."""
        self._ensure_open()
        if key in self._writes:
            write = self._writes[key]
            if write.data is None:
                return None
            return Record(key, copy.deepcopy(write.data), write.expected_version or 0)

        record = (await self._store._fetch([key]))[0]
        self._read_versions[key] = record.version if record else 0
        return record

    def put(self, key: Key, data: dict[str, Any], expected_version: Optional[int] = None) -> None:
        self._ensure_open()
        self._writes[key] = Write(copy.deepcopy(data), self._expected(key, expected_version))

    def delete(self, key: Key, expected_version: Optional[int] = None) -> None:
        self._ensure_open()
        self._writes[key] = Write(None, self._expected(key, expected_version))

    def on_commit(self, fn: Callable[[], Awaitable[None]]) -> None:
        """Run ``fn`` after a successful commit. Dropped on rollback."""
        self._ensure_open()
        self._on_commit.append(fn)

    def _expected(self, key: Key, expected_version: Optional[int]) -> Optional[int]:
        if expected_version is not None:
            return expected_version
        if key in self._writes:
            return self._writes[key].expected_version
        return self._read_versions.get(key)

    async def commit(self) -> None:
        self._ensure_open()
        writes, self._writes = self._writes, {}
        self.pending = False
        if writes:
            await self._store._apply(writes, check_versions=True)

    async def rollback(self) -> None:
        if not self.pending:
            return
        self.pending = False
        self._writes = {}
        self._on_commit = []

    async def run_commit_hooks(self) -> None:
        hooks, self._on_commit = self._on_commit, []
        for hook in hooks:
            await hook()


class Datastore(ABC):
    """
    Transactional document store.

    Subclasses implement the four storage primitives; everything else is
    shared so both backends behave the same way under transactions.
    """

    @abstractmethod
    async def allocate_id(self, kind: str) -> int:
        """Reserve a new numeric id."""
        pass

    @abstractmethod
    async def _fetch(self, keys: list[Key]) -> list[Optional[Record]]:
        pass

    @abstractmethod
    async def _apply(self, writes: dict[Key, Write], check_versions: bool) -> None:
        """Apply puts and deletes atomically, checking expected versions if asked."""
        pass

    @abstractmethod
    async def _run_query(self, query: Query) -> list[Record]:
        pass

    async def allocate_key(self, kind: str) -> Key:
        return Key(kind=kind, id=await self.allocate_id(kind))

    async def get(self, key: Key, transactional: bool = False) -> Optional[Record]:
        tx = current_transaction()
        if transactional and tx is not None:
            return await tx.get(key)
        return (await self._fetch([key]))[0]

    async def get_multi(self, keys: list[Key]) -> list[Optional[Record]]:
        if not keys:
            return []
        return await self._fetch(list(keys))

    async def put(
        self,
        key: Key,
        data: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> None:
        tx = current_transaction()
        if tx is not None:
            tx.put(key, data, expected_version)
            return
        await self._apply({key: Write(copy.deepcopy(data), expected_version)}, check_versions=False)

    async def put_multi(self, items: list[tuple[Key, dict[str, Any], Optional[int]]]) -> None:
        if not items:
            return
        tx = current_transaction()
        if tx is not None:
            for key, data, version in items:
                tx.put(key, data, version)
            return
        writes = {key: Write(copy.deepcopy(data), version) for key, data, version in items}
        await self._apply(writes, check_versions=False)

    async def delete(self, key: Key, expected_version: Optional[int] = None) -> None:
        tx = current_transaction()
        if tx is not None:
            tx.delete(key, expected_version)
            return
        await self._apply({key: Write(None, expected_version)}, check_versions=False)

    async def delete_multi(self, keys: list[Key]) -> None:
        if not keys:
            return
        tx = current_transaction()
        if tx is not None:
            for key in keys:
                tx.delete(key)
            return
        await self._apply({key: Write(None) for key in keys}, check_versions=False)

    async def query(self, query: Query) -> list[Record]:
        return await self._run_query(query)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """
        Open a transaction for the current context.

        Commits on normal exit and rolls back on any exception. If a
        transaction is already open in this context it is joined, and the
        outermost block decides the outcome.
        """
        existing = current_transaction()
        if existing is not None:
            yield existing
            return

        tx = Transaction(self)
        scope = _request_transactions.get()
        if scope is not None:
            scope.append(tx)

        token = _current_transaction.set(tx)
        try:
            yield tx
            await tx.commit()
        except BaseException:
            await tx.rollback()
            raise
        finally:
            _current_transaction.reset(token)
        await tx.run_commit_hooks()

    async def run_in_transaction(
        self,
        fn: Callable[[], Awaitable[T]],
        attempts: int = MAX_TRANSACTION_ATTEMPTS,
    ) -> T:
        """
        Run ``fn`` inside a transaction, retrying on commit conflicts.

        ``fn`` must reload whatever it mutates, since a retry starts over.
        """
        for attempt in range(1, attempts + 1):
            try:
                async with self.transaction():
                    return await fn()
            except TransactionConflictError as e:
                if attempt == attempts:
                    raise
                logger.warning("Retrying transaction after conflict (attempt %d): %s", attempt, e.message)
        raise TransactionConflictError()


async def after_commit(fn: Callable[[], Awaitable[None]]) -> None:
    """
    Run ``fn`` once the open transaction commits, or right away if none is open.

    Side effects that leave the process (queue jobs, pushes, email) go
    through here so a rolled back request never announces its writes.
    """
    tx = current_transaction()
    if tx is None:
        await fn()
    else:
        tx.on_commit(fn)


def transactional(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Run a service method in a transaction, retrying on conflicts.

    The service exposes its store as ``datastore``. Calls made while a
    transaction is already open join it.
    """

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        return await self.datastore.run_in_transaction(lambda: method(self, *args, **kwargs))

    return wrapper


@asynccontextmanager
async def request_scope() -> AsyncIterator[list[Transaction]]:
    """
    Track transactions opened while handling one request.

    Anything still pending when the request ends is rolled back.
    """
    opened: list[Transaction] = []
    _request_transactions.set(opened)
    try:
        yield opened
    finally:
        for tx in opened:
            if tx.pending:
                logger.warning("Rolling back transaction left pending at request end")
                await tx.rollback()


def _matches(data: dict[str, Any], flt: Filter) -> bool:
    value = data.get(flt.field)
    if flt.op == "contains":
        return isinstance(value, list) and flt.value in value
    return value == flt.value


class MemoryDatastore(Datastore):
    """
    In-process datastore used for development and tests.

    Mutations happen under a lock without suspending, so every apply is
    atomic with respect to other requests.
    """

    def __init__(self, first_id: int = 1):
        self._records: dict[Key, tuple[dict[str, Any], int]] = {}
        self._next_id = first_id
        self._lock = threading.Lock()

    async def allocate_id(self, kind: str) -> int:
        with self._lock:
            allocated = self._next_id
            self._next_id += 1
        return allocated

    async def _fetch(self, keys: list[Key]) -> list[Optional[Record]]:
        with self._lock:
            results: list[Optional[Record]] = []
            for key in keys:
                stored = self._records.get(key)
                if stored is None:
                    results.append(None)
                else:
                    results.append(Record(key, copy.deepcopy(stored[0]), stored[1]))
            return results

    async def _apply(self, writes: dict[Key, Write], check_versions: bool) -> None:
        with self._lock:
            if check_versions:
                for key, write in writes.items():
                    if write.expected_version is None:
                        continue
                    stored = self._records.get(key)
                    current = stored[1] if stored else 0
                    if current != write.expected_version:
                        raise TransactionConflictError(key)

            for key, write in writes.items():
                stored = self._records.get(key)
                if write.data is None:
                    self._records.pop(key, None)
                else:
                    version = stored[1] + 1 if stored else 1
                    self._records[key] = (copy.deepcopy(write.data), version)

    async def _run_query(self, query: Query) -> list[Record]:
        with self._lock:
            matched = [
                Record(key, copy.deepcopy(data), version)
                for key, (data, version) in self._records.items()
                if key.kind == query.kind and all(_matches(data, f) for f in query.filters)
            ]

        if query.order_by:
            name = query.order_by
            matched.sort(
                key=lambda r: (r.data.get(name) is None, r.data.get(name) or "", r.key.id),
                reverse=query.descending,
            )
        else:
            matched.sort(key=lambda r: r.key.id)

        end = None if query.limit is None or query.limit < 0 else query.offset + query.limit
        return matched[query.offset:end]
