import datetime as dt

from pydantic import Field

from backend.app.models.reservation import CamelModel


class CreateReservationIn(CamelModel):
    restaurant_id: str = Field(min_length=1)
    # Calendar date as supplied, e.g. "2024-05-01"; no timezone handling
    date: dt.date
    time: str = Field(min_length=1, max_length=32)
    number_of_guests: int = Field(ge=1, le=100)
    special_requests: str | None = Field(default=None, max_length=1024)
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")


class UpdateStatusIn(CamelModel):
    status: str = Field(min_length=1, max_length=64)
