"""Async persistence for registered forms and their submissions.

Session management plus three query helpers. The helpers never raise on
database failures: they return Result values, with SQLAlchemy exceptions
mapped through DatabaseErrorMapper.
"""
from typing import Any, AsyncIterator, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from core.config import settings
from core.errors import AppError, DatabaseErrorMapper, Err, Ok, Result, not_found
from core.logging import db_logger

T = TypeVar("T")

log = db_logger()


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.LOG_SQL}
    # SQLite uses a single-connection pool; sizing only applies to server databases
    if not url.startswith("sqlite"):
        options.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

_mapper = DatabaseErrorMapper("database")


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        yield session


async def fetch_one(
    session: AsyncSession,
    model: type[T],
    id: UUID,
    entity_name: str | None = None,
) -> Result[T, AppError]:
    """Load a row by primary key; a missing row is Err(not_found)."""
    try:
        entity = await session.get(model, id)
    except SQLAlchemyError as e:
        return Err(_mapper.map_exception(e))
    if entity is None:
        return not_found(entity_name or model.__name__, id, origin="database.fetch_one")
    return Ok(entity)


async def fetch_many(
    session: AsyncSession,
    model: type[T],
    *,
    order_by=None,
    limit: int | None = None,
    **filters,
) -> Result[list[T], AppError]:
    """Rows matching equality filters, e.g. `fetch_many(db, FormSubmission, form_id=form.id)`."""
    query = select(model).filter_by(**filters)
    if order_by is not None:
        query = query.order_by(order_by)
    if limit is not None:
        query = query.limit(limit)
    try:
        rows = (await session.scalars(query)).all()
    except SQLAlchemyError as e:
        return Err(_mapper.map_exception(e))
    return Ok(list(rows))


async def create_entity(session: AsyncSession, entity: T) -> Result[T, AppError]:
    """Insert and commit. Constraint violations roll back and come back as Err."""
    session.add(entity)
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        error = _mapper.map_exception(e)
        log.warning("create_failed", entity=type(entity).__name__, error_code=error.code.name)
        return Err(error)
    await session.refresh(entity)
    return Ok(entity)
