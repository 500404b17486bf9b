"""
Async SQLite access for the SQLite-backed data store.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import aiosqlite


logger = logging.getLogger(__name__)

Params = Tuple[Any, ...]


class Database:
    """One lazily opened aiosqlite connection plus the statements the stores need."""

    def __init__(self, db_path: Union[str, Path] = "concert-data/concerts.db", schema: Sequence[str] = ()):
        self.db_path = Path(db_path)
        self._schema = list(schema)
        self._connection: Optional[aiosqlite.Connection] = None

    async def _conn(self) -> aiosqlite.Connection:
        if self._connection is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(self.db_path, timeout=30)
            conn.row_factory = aiosqlite.Row
            await conn.execute("PRAGMA journal_mode=WAL;")
            await conn.execute("PRAGMA busy_timeout=30000;")
            for statement in self._schema:
                await conn.execute(statement)
            await conn.commit()
            self._connection = conn
            logger.debug(f"Opened {self.db_path} ({len(self._schema)} schema statements)")
        return self._connection

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    @asynccontextmanager
    async def transaction(self):
        """Commit on success; roll back and re-raise on any error, cancellation included."""
        conn = await self._conn()
        await conn.execute("BEGIN")
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            raise
        await conn.commit()

    async def fetch_one(self, sql: str, params: Params = ()) -> Optional[aiosqlite.Row]:
        conn = await self._conn()
        async with conn.execute(sql, params) as cursor:
            return await cursor.fetchone()

    async def fetch_all(self, sql: str, params: Params = ()) -> List[aiosqlite.Row]:
        conn = await self._conn()
        async with conn.execute(sql, params) as cursor:
            return list(await cursor.fetchall())

    async def write(self, sql: str, params: Params = ()) -> None:
        """Run one statement and commit it."""
        async with self.transaction() as conn:
            await conn.execute(sql, params)

    async def replace_all(self, table: str, columns: List[str], rows: Iterable[Params]) -> None:
        """Swap the full contents of ``table`` for ``rows`` atomically."""
        insert = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))})"
        async with self.transaction() as conn:
            await conn.execute(f"DELETE FROM {table}")
            await conn.executemany(insert, list(rows))

    async def upsert(self, table: str, data: Dict[str, Any], key_columns: List[str]) -> None:
        """Insert ``data`` or update the non-key columns of the existing row."""
        columns = list(data)
        updates = ", ".join(f"{col} = excluded.{col}" for col in columns if col not in key_columns)
        on_conflict = f"DO UPDATE SET {updates}" if updates else "DO NOTHING"
        sql = (
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' * len(columns))}) "
            f"ON CONFLICT({', '.join(key_columns)}) {on_conflict}"
        )
        await self.write(sql, tuple(data.values()))
