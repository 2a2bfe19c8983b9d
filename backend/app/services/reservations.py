import datetime as dt
from typing import Awaitable, Callable

from loguru import logger

from backend.app.core.exceptions import NotFoundError, NotificationError, ValidationError
from backend.app.models.reservation import (
    STATUS_TRANSITIONS,
    Reservation,
    ReservationDraft,
    ReservationListItem,
    ReservationStatus,
    StatusPolicy,
)
from backend.app.services.notifier import ReservationEmails
from backend.app.services.restaurants import RestaurantLookup
from backend.app.services.store import ReservationStore


def check_status_change(current: str, new: str, policy: StatusPolicy) -> str:
    """Return the status to write, or raise ValidationError under the strict policy."""
    if policy is StatusPolicy.FREE_FORM:
        return new

    try:
        target = ReservationStatus(new)
    except ValueError:
        allowed = ", ".join(s.value for s in ReservationStatus)
        raise ValidationError(f"Unknown status '{new}'; expected one of: {allowed}") from None

    try:
        source = ReservationStatus(current)
    except ValueError:
        # Legacy free-form value: only a move into the known set is possible
        return target.value

    if target is not source and target not in STATUS_TRANSITIONS[source]:
        raise ValidationError(f"Cannot change reservation status from '{source}' to '{target}'")
    return target.value


class ReservationManager:
    """Reservation lifecycle: create, list, status update and cancellation.

    Every write is persisted before the guest is notified. A failed
    notification does not undo the write; it is raised as NotificationError
    carrying the reservation id.
    """

    def __init__(
        self,
        restaurants: RestaurantLookup,
        store: ReservationStore,
        emails: ReservationEmails,
        status_policy: StatusPolicy = StatusPolicy.FREE_FORM,
    ):
        self.restaurants = restaurants
        self.store = store
        self.emails = emails
        self.status_policy = status_policy

    async def create(
        self,
        *,
        restaurant_id: str,
        date: dt.date,
        time: str,
        number_of_guests: int,
        name: str,
        email: str,
        special_requests: str | None = None,
    ) -> Reservation:
        restaurant = await self.restaurants.find_by_id(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")

        draft = ReservationDraft(
            restaurant_id=restaurant.id,
            restaurant_name=restaurant.name,
            date=date,
            time=time,
            number_of_guests=number_of_guests,
            special_requests=special_requests,
            name=name,
            email=email,
            status=ReservationStatus.PENDING.value,
        )
        reservation = await self.store.insert(draft)
        logger.info(f"Reservation {reservation.id} created for {restaurant.name} on {reservation.date}")

        await self._notify(reservation, self.emails.send_confirmation)
        return reservation

    async def list(self) -> list[ReservationListItem]:
        return await self.store.list_with_restaurants()

    async def update_status(self, reservation_id: str, status: str) -> Reservation:
        current = await self.store.get(reservation_id)
        if current is None:
            raise NotFoundError("Reservation not found")

        new_status = check_status_change(current.status, status, self.status_policy)
        reservation = await self.store.update_status(reservation_id, new_status)
        if reservation is None:
            # Removed between the read and the write
            raise NotFoundError("Reservation not found")
        logger.info(f"Reservation {reservation_id} status {current.status} -> {new_status}")

        await self._notify(reservation, self.emails.send_status_update)
        return reservation

    async def cancel(self, reservation_id: str) -> Reservation:
        reservation = await self.store.delete(reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        logger.info(f"Reservation {reservation_id} cancelled and removed")

        await self._notify(reservation, self.emails.send_cancellation)
        return reservation

    async def _notify(
        self, reservation: Reservation, send: Callable[[Reservation], Awaitable[None]]
    ) -> None:
        try:
            await send(reservation)
        except NotificationError as exc:
            exc.reservation_id = reservation.id
            raise
        except Exception as exc:
            logger.opt(exception=exc).error(f"Notification for reservation {reservation.id} failed")
            raise NotificationError(str(exc), reservation_id=reservation.id) from exc
