"""
Supabase-backed datastore.

Entities are rows of the ``entities`` table (see migrations/001_entities.sql)
holding the JSON document and a version counter. Batched writes go through
the ``commit_entities`` function so a transaction lands atomically; a version
mismatch raises SQLSTATE 40001, surfaced here as TransactionConflictError.
"""

import logging
from collections import defaultdict
from typing import Any, Optional

from supabase import Client, PostgrestAPIError

from .datastore import Datastore, Query, Record, TransactionConflictError, Write
from .exceptions import ExternalServiceError
from .keys import Key

logger = logging.getLogger(__name__)

TABLE = "entities"
COLUMNS = "kind,id,data,version"
SERIALIZATION_FAILURE = "40001"


class SupabaseDatastore(Datastore):
    """Datastore over a Supabase (PostgREST) project."""

    def __init__(self, client: Client):
        self._db = client

    async def allocate_id(self, kind: str) -> int:
        try:
            result = self._db.rpc("allocate_entity_id", {}).execute()
        except PostgrestAPIError as e:
            raise ExternalServiceError(f"Could not allocate id: {e.message}", service="supabase")
        return int(result.data)

    async def _fetch(self, keys: list[Key]) -> list[Optional[Record]]:
        by_kind: dict[str, list[int]] = defaultdict(list)
        for key in keys:
            by_kind[key.kind].append(key.id)

        found: dict[Key, Record] = {}
        for kind, ids in by_kind.items():
            try:
                result = (
                    self._db.table(TABLE)
                    .select(COLUMNS)
                    .eq("kind", kind)
                    .in_("id", ids)
                    .execute()
                )
            except PostgrestAPIError as e:
                raise ExternalServiceError(f"Could not load {kind}: {e.message}", service="supabase")
            for row in result.data:
                record = self._map_row(row)
                found[record.key] = record

        return [found.get(key) for key in keys]

    async def _apply(self, writes: dict[Key, Write], check_versions: bool) -> None:
        puts: list[dict[str, Any]] = []
        deletes: list[dict[str, Any]] = []
        for key, write in writes.items():
            row = {"kind": key.kind, "id": key.id, "expected_version": write.expected_version}
            if write.data is None:
                deletes.append(row)
            else:
                row["data"] = write.data
                puts.append(row)

        try:
            self._db.rpc(
                "commit_entities",
                {"puts": puts, "deletes": deletes, "check_versions": check_versions},
            ).execute()
        except PostgrestAPIError as e:
            if e.code == SERIALIZATION_FAILURE:
                raise TransactionConflictError()
            raise ExternalServiceError(f"Commit failed: {e.message}", service="supabase")

    async def _run_query(self, query: Query) -> list[Record]:
        request = self._db.table(TABLE).select(COLUMNS).eq("kind", query.kind)

        for flt in query.filters:
            if flt.op == "contains":
                request = request.contains("data", {flt.field: [flt.value]})
            else:
                request = request.contains("data", {flt.field: flt.value})

        if query.order_by:
            request = request.order(f"data->>{query.order_by}", desc=query.descending)
        else:
            request = request.order("id")

        if query.limit is not None and query.limit >= 0:
            request = request.range(query.offset, query.offset + query.limit - 1)

        try:
            result = request.execute()
        except PostgrestAPIError as e:
            raise ExternalServiceError(f"Query on {query.kind} failed: {e.message}", service="supabase")

        records = [self._map_row(row) for row in result.data]
        if query.limit is None and query.offset:
            records = records[query.offset:]
        return records

    def _map_row(self, row: dict[str, Any]) -> Record:
        return Record(
            key=Key(kind=row["kind"], id=int(row["id"])),
            data=row["data"],
            version=int(row["version"]),
        )
