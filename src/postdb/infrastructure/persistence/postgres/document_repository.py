"""PostgreSQL document repository implementation.

Each collection is its own table::

    id VARCHAR(255) PRIMARY KEY, seq BIGINT UNIQUE, body JSONB,
    deleted BOOLEAN, idx JSONB, cluster_id VARCHAR(255)

``idx`` holds the projected index values; each declared index has an
expression index on ``(idx ->> name) COLLATE "C"``.
"""

from typing import Any

from psycopg import AsyncConnection, sql
from psycopg.types.json import Jsonb

from postdb.domain.entities import Document

_SELECT = "SELECT id, seq, body, deleted, idx, cluster_id FROM {table}"


def _document(r: tuple) -> Document:
    return Document(
        id=r[0],
        sequence=r[1],
        body=r[2] or {},
        deleted=r[3],
        index_values=r[4] or {},
        origin_cluster=r[5] or "",
    )


def _next_seq(table: sql.Identifier) -> sql.Composed:
    return sql.SQL("(SELECT COALESCE(MAX(seq), 0) + 1 FROM {})").format(table)


def _index_expr(index_name: str) -> sql.Composed:
    # Literal index name so the planner can match the expression index.
    return sql.SQL('(idx ->> {}) COLLATE "C"').format(sql.Literal(index_name))


class PostgresDocumentRepository:
    """Document repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def _lock_sequence(self, collection: str) -> None:
        """Serialize sequence assignment per collection until the transaction ends."""
        await self._conn.execute(
            "SELECT pg_advisory_xact_lock(hashtext(%s))", (collection,)
        )

    async def upsert(
        self,
        collection: str,
        doc_id: str,
        body: dict[str, Any],
        index_values: dict[str, str | None],
        origin_cluster: str,
    ) -> int:
        """Insert or replace document, assigning max(seq) + 1."""
        await self._lock_sequence(collection)
        table = sql.Identifier(collection)
        q = sql.SQL(
            "INSERT INTO {table} (id, body, deleted, idx, cluster_id, seq) "
            "VALUES (%s, %s, FALSE, %s, %s, {next_seq}) "
            "ON CONFLICT (id) DO UPDATE SET body = EXCLUDED.body, deleted = FALSE, "
            "idx = EXCLUDED.idx, cluster_id = EXCLUDED.cluster_id, seq = EXCLUDED.seq "
            "RETURNING seq"
        ).format(table=table, next_seq=_next_seq(table))
        cur = await self._conn.execute(
            q, (doc_id, Jsonb(body), Jsonb(index_values), origin_cluster)
        )
        r = await cur.fetchone()
        return r[0]

    async def tombstone(self, collection: str, doc_id: str, origin_cluster: str) -> int | None:
        """Mark document deleted with a new sequence; None if the id is unknown."""
        await self._lock_sequence(collection)
        table = sql.Identifier(collection)
        q = sql.SQL(
            "UPDATE {table} SET deleted = TRUE, body = %s, idx = %s, cluster_id = %s, "
            "seq = {next_seq} WHERE id = %s RETURNING seq"
        ).format(table=table, next_seq=_next_seq(table))
        cur = await self._conn.execute(q, (Jsonb({}), Jsonb({}), origin_cluster, doc_id))
        r = await cur.fetchone()
        return r[0] if r else None

    async def get(self, collection: str, doc_id: str, for_update: bool = False) -> Document | None:
        """Get document by id, tombstones included."""
        q = _SELECT + " WHERE id = %s"
        if for_update:
            q += " FOR UPDATE"
        cur = await self._conn.execute(
            sql.SQL(q).format(table=sql.Identifier(collection)), (doc_id,)
        )
        r = await cur.fetchone()
        return _document(r) if r else None

    async def purge(self, collection: str, doc_ids: list[str]) -> list[str]:
        """Hard delete rows; their sequences leave the change feed."""
        if not doc_ids:
            return []
        cur = await self._conn.execute(
            sql.SQL("DELETE FROM {table} WHERE id = ANY(%s) RETURNING id").format(
                table=sql.Identifier(collection)
            ),
            (doc_ids,),
        )
        return [r[0] for r in await cur.fetchall()]

    async def all_docs(
        self,
        collection: str,
        *,
        start_key: str,
        end_key: str,
        limit: int,
        offset: int = 0,
    ) -> list[Document]:
        """Live documents ordered by id."""
        q = sql.SQL(
            _SELECT + ' WHERE deleted = FALSE AND id COLLATE "C" >= %s AND id COLLATE "C" <= %s '
            'ORDER BY id COLLATE "C" LIMIT %s OFFSET %s'
        ).format(table=sql.Identifier(collection))
        cur = await self._conn.execute(q, (start_key, end_key, limit, offset))
        return [_document(r) for r in await cur.fetchall()]

    async def changes(
        self,
        collection: str,
        *,
        since: int,
        limit: int | None = None,
        exclude_origin_cluster: str | None = None,
    ) -> list[Document]:
        """Rows with seq > since in seq order, tombstones included."""
        q = _SELECT + " WHERE seq > %s"
        params: list[object] = [since]
        if exclude_origin_cluster:
            q += " AND cluster_id <> %s"
            params.append(exclude_origin_cluster)
        q += " ORDER BY seq"
        if limit is not None:
            q += " LIMIT %s"
            params.append(limit)
        cur = await self._conn.execute(
            sql.SQL(q).format(table=sql.Identifier(collection)), tuple(params)
        )
        return [_document(r) for r in await cur.fetchall()]

    async def query(
        self,
        collection: str,
        index_name: str,
        *,
        key: str | None = None,
        start_key: str | None = None,
        end_key: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Document]:
        """Live documents by index value, ordered by (value, id)."""
        expr = _index_expr(index_name)
        if key is not None:
            where = sql.SQL("{expr} = %s").format(expr=expr)
            params: list[object] = [key]
        else:
            where = sql.SQL("{expr} >= %s AND {expr} <= %s").format(expr=expr)
            params = [start_key, end_key]
        q = sql.SQL(
            _SELECT + " WHERE deleted = FALSE AND {where} "
            'ORDER BY {expr}, id COLLATE "C" LIMIT %s OFFSET %s'
        ).format(table=sql.Identifier(collection), where=where, expr=expr)
        cur = await self._conn.execute(q, (*params, limit, offset))
        return [_document(r) for r in await cur.fetchall()]
