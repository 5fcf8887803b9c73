"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/base.py
============================================================
Class: PostgresRepositoryBase

Responsibilities:
- Resolver el pool (inyectado o global) de forma lazy.
- Helpers de ejecución con errores consistentes (DatabaseError + log).

Constraints / Notes:
- Queries siempre parametrizadas.
- Los repos concretos no capturan excepciones por su cuenta: todo pasa
  por _fetchall/_fetchone/_execute/_transaction.
============================================================
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from psycopg import Connection
from psycopg_pool import ConnectionPool

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger

T = TypeVar("T")


class PostgresRepositoryBase:
    def __init__(self, pool: Optional[ConnectionPool] = None):
        # R: Pool inyectable para tests; en runtime se obtiene del singleton.
        self._pool = pool

    def _get_pool(self) -> ConnectionPool:
        if self._pool is not None:
            return self._pool

        from ...db.pool import get_pool

        return get_pool()

    def _fail(self, context_msg: str, extra: dict, exc: Exception) -> DatabaseError:
        logger.exception(context_msg, extra={**extra, "error": str(exc)})
        return DatabaseError(f"{context_msg}: {exc}", original_error=exc)

    def _fetchall(
        self, *, query: str, params: Iterable[Any], context_msg: str, extra: dict
    ) -> list[tuple]:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchall()
        except Exception as exc:
            raise self._fail(context_msg, extra, exc) from exc

    def _fetchone(
        self, *, query: str, params: Iterable[Any], context_msg: str, extra: dict
    ) -> tuple | None:
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).fetchone()
        except Exception as exc:
            raise self._fail(context_msg, extra, exc) from exc

    def _execute(
        self, *, query: str, params: Iterable[Any], context_msg: str, extra: dict
    ) -> int:
        """Ejecuta un DML y devuelve rowcount."""
        try:
            with self._get_pool().connection() as conn:
                return conn.execute(query, tuple(params)).rowcount
        except Exception as exc:
            raise self._fail(context_msg, extra, exc) from exc

    def _in_transaction(
        self, work: Callable[[Connection], T], *, context_msg: str, extra: dict
    ) -> T:
        """Corre `work(conn)` dentro de una transacción (rollback ante error)."""
        try:
            with self._transaction() as conn:
                return work(conn)
        except Exception as exc:
            raise self._fail(context_msg, extra, exc) from exc

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        with self._get_pool().connection() as conn:
            with conn.transaction():
                yield conn
