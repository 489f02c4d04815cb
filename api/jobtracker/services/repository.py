from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from functools import lru_cache, wraps
from typing import Any, TypeVar
from uuid import uuid4

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from jobtracker.core.config import get_settings
from jobtracker.core.errors import (
    NotFoundError,
    StoreUnavailableError,
    TrackerValidationError,
    UpstreamFailureError,
)
from jobtracker.schemas.jobs import DEFAULT_JOB_STATUS, MANUAL_SOURCE
from jobtracker.services.schema import SCHEMA_SQL
from jobtracker.services.store import JOB_EDITABLE_FIELDS, InMemoryStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

JOB_COLUMNS = """
  id,
  job_title,
  company_name,
  location,
  job_url,
  description,
  salary,
  job_type,
  is_remote,
  notes,
  source,
  status,
  created_at,
  updated_at
"""

ATTACHMENT_COLUMNS = """
  id,
  job_id,
  file_name,
  file_type,
  mime_type,
  file_size,
  created_at
"""

# Raised once a pooled connection drops, times out or is closed under a query.
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    pg_exc.PostgresConnectionError,
    pg_exc.InterfaceError,
    OSError,
)


def _store_call(method: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @wraps(method)
    async def wrapper(self: PostgresRepository, *args: Any, **kwargs: Any) -> T:
        try:
            return await method(self, *args, **kwargs)
        except CONNECTION_ERRORS as exc:
            logger.warning("database call failed method=%s error=%s", method.__name__, exc)
            raise StoreUnavailableError("database unavailable") from exc

    return wrapper


class PostgresRepository:
    """Job and attachment store backed by Postgres.

    Attachments reference their job with ``on delete cascade`` so deleting a job
    removes its files in the same statement.
    """

    cascades_attachments = True

    def __init__(self, database_url: str | None, min_pool_size: int, max_pool_size: int) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self._pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    @_store_call
    async def ensure_schema(self) -> None:
        pool = await self._get_pool()
        await pool.execute(SCHEMA_SQL)

    @_store_call
    async def list_jobs(self, *, status: str | None = None, source: str | None = None) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"""
            select {JOB_COLUMNS}
            from jobs
            where ($1::text is null or status = $1)
              and ($2::text is null or source = $2)
            order by created_at desc
            """,
            status or None,
            source or None,
        )
        return [dict(row) for row in rows]

    @_store_call
    async def get_job(self, job_id: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(f"select {JOB_COLUMNS} from jobs where id = $1", job_id)
        if row is None:
            raise NotFoundError("job not found")
        return dict(row)

    @_store_call
    async def create_job(self, payload: dict[str, Any]) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into jobs (
                  id, job_title, company_name, location, job_url, description,
                  salary, job_type, is_remote, notes, source, status
                )
                values ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
                returning {JOB_COLUMNS}
                """,
                str(uuid4()),
                *self._editable_values(payload),
                payload.get("source") or MANUAL_SOURCE,
                payload.get("status") or DEFAULT_JOB_STATUS,
            )
        except pg_exc.CheckViolationError as exc:
            raise TrackerValidationError(f"job rejected by store: {exc.constraint_name}") from exc
        if row is None:
            raise UpstreamFailureError("insert returned no row")
        return dict(row)

    @_store_call
    async def replace_job(self, job_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update jobs
                set
                  job_title = $2,
                  company_name = $3,
                  location = $4,
                  job_url = $5,
                  description = $6,
                  salary = $7,
                  job_type = $8,
                  is_remote = $9,
                  notes = $10,
                  updated_at = now()
                where id = $1
                returning {JOB_COLUMNS}
                """,
                job_id,
                *self._editable_values(payload),
            )
        except pg_exc.CheckViolationError as exc:
            raise TrackerValidationError(f"job rejected by store: {exc.constraint_name}") from exc
        if row is None:
            raise NotFoundError("job not found")
        return dict(row)

    @_store_call
    async def patch_job_status(self, job_id: str, status: str) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                update jobs
                set status = $2, updated_at = now()
                where id = $1
                returning {JOB_COLUMNS}
                """,
                job_id,
                status,
            )
        except pg_exc.CheckViolationError as exc:
            raise TrackerValidationError(f"status rejected by store: {status}") from exc
        if row is None:
            raise NotFoundError("job not found")
        return dict(row)

    @_store_call
    async def delete_job(self, job_id: str) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval("delete from jobs where id = $1 returning id", job_id)
        if deleted is None:
            raise NotFoundError("job not found")

    @_store_call
    async def list_attachments(self, job_id: str) -> list[dict[str, Any]]:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            exists = await conn.fetchval("select 1 from jobs where id = $1", job_id)
            if exists is None:
                raise NotFoundError("job not found")
            rows = await conn.fetch(
                f"""
                select {ATTACHMENT_COLUMNS}
                from job_attachments
                where job_id = $1
                order by created_at asc
                """,
                job_id,
            )
        return [dict(row) for row in rows]

    @_store_call
    async def create_attachment(
        self,
        *,
        job_id: str,
        file_name: str,
        file_type: str,
        mime_type: str,
        content: bytes,
    ) -> dict[str, Any]:
        pool = await self._get_pool()
        try:
            row = await pool.fetchrow(
                f"""
                insert into job_attachments (id, job_id, file_name, file_type, mime_type, file_size, content)
                values ($1, $2, $3, $4, $5, $6, $7)
                returning {ATTACHMENT_COLUMNS}
                """,
                str(uuid4()),
                job_id,
                file_name,
                file_type,
                mime_type,
                len(content),
                content,
            )
        except pg_exc.ForeignKeyViolationError as exc:
            raise NotFoundError("job not found") from exc
        except pg_exc.CheckViolationError as exc:
            raise TrackerValidationError(f"attachment rejected by store: {exc.constraint_name}") from exc
        if row is None:
            raise UpstreamFailureError("insert returned no row")
        return dict(row)

    @_store_call
    async def get_attachment(self, *, job_id: str, attachment_id: str) -> dict[str, Any]:
        pool = await self._get_pool()
        row = await pool.fetchrow(
            f"""
            select {ATTACHMENT_COLUMNS}, content
            from job_attachments
            where id = $1 and job_id = $2
            """,
            attachment_id,
            job_id,
        )
        if row is None:
            raise NotFoundError("attachment not found")
        return dict(row)

    @_store_call
    async def delete_attachment(self, attachment_id: str, *, job_id: str | None = None) -> None:
        pool = await self._get_pool()
        deleted = await pool.fetchval(
            """
            delete from job_attachments
            where id = $1 and ($2::text is null or job_id = $2)
            returning id
            """,
            attachment_id,
            job_id,
        )
        if deleted is None:
            raise NotFoundError("attachment not found")

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise StoreUnavailableError("JT_DATABASE_URL is required")

        if self._pool is not None:
            return self._pool

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self.database_url,
                min_size=self.min_pool_size,
                max_size=self.max_pool_size,
                command_timeout=15,
            )
            return self._pool
        except Exception as exc:  # pragma: no cover - depends on environment
            logger.exception("failed to open database pool")
            raise StoreUnavailableError("database unavailable") from exc

    @staticmethod
    def _editable_values(payload: dict[str, Any]) -> list[Any]:
        values = [payload.get(key) for key in JOB_EDITABLE_FIELDS]
        values[JOB_EDITABLE_FIELDS.index("is_remote")] = bool(payload.get("is_remote"))
        return values


@lru_cache
def get_repository() -> PostgresRepository | InMemoryStore:
    settings = get_settings()
    if not settings.database_url:
        logger.info("JT_DATABASE_URL not set; using in-memory store")
        return InMemoryStore()
    return PostgresRepository(
        database_url=settings.database_url,
        min_pool_size=settings.database_pool_min_size,
        max_pool_size=settings.database_pool_max_size,
    )
