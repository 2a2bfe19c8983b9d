from datetime import date
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from backend.app.core.exceptions import InternalError
from backend.app.models.reservation import ReservationDraft
from backend.app.services.restaurants import SqlRestaurantLookup
from backend.app.services.store import SqlReservationStore


pytestmark = pytest.mark.asyncio


def _broken_session(exc: Exception) -> AsyncMock:
    session = AsyncMock()
    session.execute.side_effect = exc
    return session


async def test_lookup_failure_reports_driver_message_and_rolls_back():
    session = _broken_session(DBAPIError("SELECT id, name FROM restaurant", {}, Exception("boom")))

    with pytest.raises(InternalError, match="^boom$"):
        await SqlRestaurantLookup(session).find_by_id(str(uuid4()))

    session.rollback.assert_awaited_once()


async def test_insert_failure_reports_driver_message_and_rolls_back():
    session = _broken_session(DBAPIError("INSERT INTO reservation", {}, Exception("boom")))
    draft = ReservationDraft(
        restaurant_id=str(uuid4()),
        restaurant_name="Bistro",
        date=date(2024, 5, 1),
        time="19:00",
        number_of_guests=2,
        name="Ana",
        email="ana@x.com",
    )

    with pytest.raises(InternalError, match="^boom$") as excinfo:
        await SqlReservationStore(session).insert(draft)

    assert excinfo.value.status_code == 500
    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()


@pytest.mark.parametrize("operation", ["get", "delete", "list_with_restaurants"])
async def test_store_reads_and_deletes_map_failures(operation):
    session = _broken_session(OperationalError("SELECT 1", {}, Exception("server closed the connection")))
    store = SqlReservationStore(session)

    args = () if operation == "list_with_restaurants" else (str(uuid4()),)
    with pytest.raises(InternalError, match="server closed the connection"):
        await getattr(store, operation)(*args)

    session.rollback.assert_awaited_once()


async def test_malformed_ids_never_reach_the_database():
    session = AsyncMock()

    assert await SqlRestaurantLookup(session).find_by_id("nonexistent") is None
    assert await SqlReservationStore(session).delete("nonexistent") is None

    session.execute.assert_not_awaited()
