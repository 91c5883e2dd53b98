from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import asyncpg

from .config import Settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)

Row = Sequence[Any]


class Store(Protocol):
    async def create(self, table: str, columns: Sequence[str], rows: Sequence[Row]) -> None: ...


class PostgresStore:
    """Bulk inserts over an asyncpg pool.

    Each ``create`` call copies its rows inside one transaction, so either
    every row of the batch is committed or none is.
    """

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    @classmethod
    async def connect(cls, settings: Settings) -> PostgresStore:
        pool = await asyncpg.create_pool(
            host=settings.db_host,
            port=settings.db_port,
            user=settings.db_user,
            password=settings.db_password,
            database=settings.db_name,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        logger.info(
            "connected to postgres at %s:%s/%s",
            settings.db_host,
            settings.db_port,
            settings.db_name,
        )
        return cls(pool)

    async def close(self) -> None:
        await self.pool.close()

    async def create(self, table: str, columns: Sequence[str], rows: Sequence[Row]) -> None:
        if not rows:
            return
        for row in rows:
            if len(row) != len(columns):
                raise PersistenceError(
                    f"row has {len(row)} values for {len(columns)} columns of {table}"
                )

        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await conn.copy_records_to_table(
                        table, records=[tuple(row) for row in rows], columns=list(columns)
                    )
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
            raise PersistenceError(f"persisting rows into {table}: {exc}") from exc

        logger.debug("inserted %d rows into %s", len(rows), table)
