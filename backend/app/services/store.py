from typing import Any, Mapping, Protocol

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.reservation import Reservation, ReservationDraft, ReservationListItem, Restaurant
from backend.app.services.restaurants import parse_uuid, store_errors


class ReservationStore(Protocol):
    async def insert(self, draft: ReservationDraft) -> Reservation: ...

    async def get(self, reservation_id: str) -> Reservation | None: ...

    async def list_with_restaurants(self) -> list[ReservationListItem]: ...

    async def update_status(self, reservation_id: str, status: str) -> Reservation | None: ...

    async def delete(self, reservation_id: str) -> Reservation | None: ...


RESERVATION_COLUMNS = """
    r.id, r.restaurant_id, r.restaurant_name, r.date, r.time, r.number_of_guests,
    r.special_requests, r.name, r.email, r.status, r.created_at, r.updated_at
"""


def _reservation_from_row(row: Mapping[str, Any]) -> Reservation:
    return Reservation(
        id=str(row["id"]),
        restaurant_id=str(row["restaurant_id"]),
        restaurant_name=row["restaurant_name"],
        date=row["date"],
        time=row["time"],
        number_of_guests=row["number_of_guests"],
        special_requests=row["special_requests"],
        name=row["name"],
        email=row["email"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SqlReservationStore:
    """Reservation persistence over Postgres using plain SQL statements."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, draft: ReservationDraft) -> Reservation:
        query = text(
            f"""
            INSERT INTO reservation AS r (
              restaurant_id, restaurant_name, date, time, number_of_guests,
              special_requests, name, email, status
            ) VALUES (
              :restaurant_id, :restaurant_name, :date, :time, :guests,
              :special_requests, :name, :email, :status
            )
            RETURNING {RESERVATION_COLUMNS}
            """
        )
        async with store_errors(self.session):
            result = await self.session.execute(
                query,
                {
                    "restaurant_id": parse_uuid(draft.restaurant_id),
                    "restaurant_name": draft.restaurant_name,
                    "date": draft.date,
                    "time": draft.time,
                    "guests": draft.number_of_guests,
                    "special_requests": draft.special_requests,
                    "name": draft.name,
                    "email": draft.email,
                    "status": draft.status,
                },
            )
            row = result.mappings().one()
            await self.session.commit()
        return _reservation_from_row(row)

    async def get(self, reservation_id: str) -> Reservation | None:
        key = parse_uuid(reservation_id)
        if key is None:
            return None

        async with store_errors(self.session):
            result = await self.session.execute(
                text(f"SELECT {RESERVATION_COLUMNS} FROM reservation r WHERE r.id = :id"),
                {"id": key},
            )
            row = result.mappings().one_or_none()
        return _reservation_from_row(row) if row is not None else None

    async def list_with_restaurants(self) -> list[ReservationListItem]:
        query = text(
            f"""
            SELECT {RESERVATION_COLUMNS}, rest.id AS restaurant_ref_id, rest.name AS restaurant_ref_name
            FROM reservation r
            LEFT JOIN restaurant rest ON rest.id = r.restaurant_id
            ORDER BY r.date DESC, r.created_at DESC
            """
        )
        async with store_errors(self.session):
            result = await self.session.execute(query)
            rows = result.mappings().all()

        items = []
        for row in rows:
            restaurant = None
            if row["restaurant_ref_id"] is not None:
                restaurant = Restaurant(id=str(row["restaurant_ref_id"]), name=row["restaurant_ref_name"])
            base = _reservation_from_row(row).model_dump(exclude={"restaurant_id"})
            items.append(ReservationListItem(restaurant_id=restaurant, **base))
        return items

    async def update_status(self, reservation_id: str, status: str) -> Reservation | None:
        key = parse_uuid(reservation_id)
        if key is None:
            return None

        query = text(
            f"""
            UPDATE reservation AS r
            SET status = :status, updated_at = now()
            WHERE r.id = :id
            RETURNING {RESERVATION_COLUMNS}
            """
        )
        async with store_errors(self.session):
            result = await self.session.execute(query, {"id": key, "status": status})
            row = result.mappings().one_or_none()
            await self.session.commit()
        return _reservation_from_row(row) if row is not None else None

    async def delete(self, reservation_id: str) -> Reservation | None:
        """Find and remove the record in one statement, returning its last state."""
        key = parse_uuid(reservation_id)
        if key is None:
            return None

        async with store_errors(self.session):
            result = await self.session.execute(
                text(f"DELETE FROM reservation AS r WHERE r.id = :id RETURNING {RESERVATION_COLUMNS}"),
                {"id": key},
            )
            row = result.mappings().one_or_none()
            await self.session.commit()
        return _reservation_from_row(row) if row is not None else None
