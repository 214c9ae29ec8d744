"""PostgreSQL collection repository implementation.

The ``_collections`` catalog records each collection's declared indexes as a
JSON array of ``{"name", "field"}`` pairs (JSONB objects do not keep key
order). Each collection's documents live in a table of the same name.
"""

from psycopg import AsyncConnection, sql
from psycopg.types.json import Jsonb

from postdb.domain.entities import CollectionSchema, IndexDefinition
from postdb.domain.exceptions import CollectionExists
from postdb.domain.value_objects.identifiers import CATALOG_TABLE

_CREATE_TABLE = (
    "CREATE TABLE IF NOT EXISTS {table} ("
    "id VARCHAR(255) PRIMARY KEY, "
    "seq BIGINT NOT NULL, "
    "body JSONB NOT NULL, "
    "deleted BOOLEAN NOT NULL DEFAULT FALSE, "
    "idx JSONB NOT NULL, "
    "cluster_id VARCHAR(255) NOT NULL DEFAULT '')"
)


class PostgresCollectionRepository:
    """Collection repository implementation."""

    def __init__(self, conn: AsyncConnection) -> None:
        self._conn = conn

    async def get_schema(self, name: str) -> CollectionSchema | None:
        """Get declared indexes of collection."""
        cur = await self._conn.execute(
            f"SELECT indexes FROM {CATALOG_TABLE} WHERE name = %s", (name,)
        )
        r = await cur.fetchone()
        if not r:
            return None
        return CollectionSchema(
            name=name,
            indexes=tuple(IndexDefinition(name=i["name"], field=i["field"]) for i in r[0]),
        )

    async def create(self, schema: CollectionSchema) -> CollectionSchema:
        """Register collection and create its table and indexes."""
        cur = await self._conn.execute(
            f"INSERT INTO {CATALOG_TABLE} (name, indexes, created_at) VALUES (%s, %s, NOW()) "
            "ON CONFLICT (name) DO NOTHING RETURNING name",
            (
                schema.name,
                Jsonb([{"name": i.name, "field": i.field} for i in schema.indexes]),
            ),
        )
        if await cur.fetchone() is None:
            raise CollectionExists(f"Collection already exists: {schema.name}")

        table = sql.Identifier(schema.name)
        await self._conn.execute(sql.SQL(_CREATE_TABLE).format(table=table))
        await self._conn.execute(
            sql.SQL("CREATE UNIQUE INDEX ON {table} (seq)").format(table=table)
        )
        for index in schema.indexes:
            await self._conn.execute(
                sql.SQL('CREATE INDEX ON {table} ((idx ->> {name}) COLLATE "C", id)').format(
                    table=table, name=sql.Literal(index.name)
                )
            )
        return schema

    async def drop(self, name: str) -> bool:
        """Drop collection table and catalog entry. Returns False if unknown."""
        cur = await self._conn.execute(
            f"DELETE FROM {CATALOG_TABLE} WHERE name = %s RETURNING name", (name,)
        )
        existed = await cur.fetchone() is not None
        await self._conn.execute(
            sql.SQL("DROP TABLE IF EXISTS {table} CASCADE").format(table=sql.Identifier(name))
        )
        return existed

    async def list_names(self) -> list[str]:
        """List collection names."""
        cur = await self._conn.execute(f"SELECT name FROM {CATALOG_TABLE} ORDER BY name")
        return [r[0] for r in await cur.fetchall()]

    async def stats(self, name: str) -> dict[str, int]:
        """Live/deleted counts, highest sequence and on-disk size."""
        cur = await self._conn.execute(
            sql.SQL(
                "SELECT COUNT(*) FILTER (WHERE NOT deleted), COUNT(*) FILTER (WHERE deleted), "
                "COALESCE(MAX(seq), 0) FROM {table}"
            ).format(table=sql.Identifier(name))
        )
        counts = await cur.fetchone()
        cur = await self._conn.execute(
            "SELECT pg_total_relation_size(c.oid) FROM pg_class c "
            "JOIN pg_namespace n ON n.oid = c.relnamespace "
            "WHERE c.relname = %s AND n.nspname = current_schema()",
            (name,),
        )
        size = await cur.fetchone()
        return {
            "doc_count": counts[0],
            "doc_del_count": counts[1],
            "update_seq": counts[2],
            "size": size[0] if size else 0,
        }
