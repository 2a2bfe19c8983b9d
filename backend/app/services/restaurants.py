from contextlib import asynccontextmanager
from typing import AsyncIterator, Protocol
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import InternalError
from backend.app.models.reservation import Restaurant


def parse_uuid(value: str) -> UUID | None:
    """Return the UUID for `value`, or None when it is not a well-formed id."""
    try:
        return UUID(str(value))
    except ValueError:
        return None


@asynccontextmanager
async def store_errors(session: AsyncSession) -> AsyncIterator[None]:
    """Roll back and re-raise database failures as InternalError with the driver message."""
    try:
        yield
    except SQLAlchemyError as exc:
        await session.rollback()
        orig = getattr(exc, "orig", None) if isinstance(exc, DBAPIError) else None
        raise InternalError(str(orig or exc)) from exc


class RestaurantLookup(Protocol):
    async def find_by_id(self, restaurant_id: str) -> Restaurant | None: ...


class SqlRestaurantLookup:
    """Read-only resolver over the `restaurant` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, restaurant_id: str) -> Restaurant | None:
        key = parse_uuid(restaurant_id)
        if key is None:
            return None

        async with store_errors(self.session):
            result = await self.session.execute(
                text("SELECT id, name FROM restaurant WHERE id = :id"),
                {"id": key},
            )
            row = result.mappings().one_or_none()
        if row is None:
            return None
        return Restaurant(id=str(row["id"]), name=row["name"])
