from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.security import Principal, public_principal, require_admin
from backend.app.db.session import get_session
from backend.app.models.reservation import Reservation, ReservationListItem, StatusPolicy
from backend.app.routers.schemas import CreateReservationIn, UpdateStatusIn
from backend.app.services.notifier import Notifier, ReservationEmails
from backend.app.services.reservations import ReservationManager
from backend.app.services.restaurants import SqlRestaurantLookup
from backend.app.services.store import SqlReservationStore


router = APIRouter(prefix="/reservation", tags=["reservations"])


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_reservation_manager(
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
) -> ReservationManager:
    return ReservationManager(
        restaurants=SqlRestaurantLookup(session),
        store=SqlReservationStore(session),
        emails=ReservationEmails(notifier, brand=settings.BRAND_NAME),
        status_policy=settings.STATUS_POLICY,
    )


@router.post(
    "",
    response_model=Reservation,
    status_code=status.HTTP_201_CREATED,
)
async def create_reservation(
    payload: CreateReservationIn,
    _: Principal | None = Depends(public_principal),
    manager: ReservationManager = Depends(get_reservation_manager),
) -> Reservation:
    return await manager.create(**payload.model_dump())


@router.get("", response_model=list[ReservationListItem])
async def list_reservations(
    _: Principal | None = Depends(require_admin),
    manager: ReservationManager = Depends(get_reservation_manager),
) -> list[ReservationListItem]:
    return await manager.list()


@router.put("/{reservation_id}", response_model=Reservation)
async def update_reservation_status(
    reservation_id: str,
    payload: UpdateStatusIn,
    _: Principal | None = Depends(require_admin),
    manager: ReservationManager = Depends(get_reservation_manager),
) -> Reservation:
    return await manager.update_status(reservation_id, payload.status)


@router.delete("/{reservation_id}", response_model=Reservation)
async def cancel_reservation(
    reservation_id: str,
    _: Principal | None = Depends(public_principal),
    manager: ReservationManager = Depends(get_reservation_manager),
) -> Reservation:
    return await manager.cancel(reservation_id)
