import datetime as dt
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReservationStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"
    COMPLETED = "completed"


# Terminal statuses have no outgoing transitions.
STATUS_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset(
        {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW}
    ),
    ReservationStatus.CONFIRMED: frozenset(
        {ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW, ReservationStatus.COMPLETED}
    ),
    ReservationStatus.CANCELLED: frozenset(),
    ReservationStatus.NO_SHOW: frozenset(),
    ReservationStatus.COMPLETED: frozenset(),
}


class StatusPolicy(StrEnum):
    FREE_FORM = "free_form"
    STRICT = "strict"


class Restaurant(CamelModel):
    id: str
    name: str


class ReservationDraft(CamelModel):
    """A reservation before the store has assigned its id."""

    restaurant_id: str
    restaurant_name: str
    date: dt.date
    time: str
    number_of_guests: int = Field(ge=1)
    special_requests: str | None = None
    name: str
    email: str
    status: str = ReservationStatus.PENDING.value


class Reservation(ReservationDraft):
    id: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class ReservationListItem(CamelModel):
    """Listing row with `restaurantId` populated from the restaurant table."""

    id: str
    restaurant_id: Restaurant | None
    restaurant_name: str
    date: dt.date
    time: str
    number_of_guests: int
    special_requests: str | None = None
    name: str
    email: str
    status: str
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None
