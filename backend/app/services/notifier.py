"""Outbound guest notifications.

The lifecycle manager only depends on the `Notifier` protocol; the
concrete backend is picked from settings when the app starts. Delivery is
awaited inline by the caller, so a slow SMTP server delays the response by
at most `SMTP_TIMEOUT_SECONDS`.
"""

import asyncio
import html
import smtplib
from datetime import date
from email.message import EmailMessage
from string import Template
from typing import Any, Mapping, Protocol

from loguru import logger

from backend.app.core.config import Settings
from backend.app.core.exceptions import NotificationError
from backend.app.models.reservation import Reservation


class Notifier(Protocol):
    async def send(self, to: str, subject: str, body_template: str, data: Mapping[str, Any]) -> None: ...


def render(body_template: str, data: Mapping[str, Any]) -> str:
    """Substitute `data` into an HTML template, escaping text values."""
    escaped = {key: html.escape(str(value)) if value is not None else "" for key, value in data.items()}
    return Template(body_template).substitute(escaped)


class SmtpNotifier:
    def __init__(self, settings: Settings):
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = settings.SMTP_PASSWORD
        self.starttls = settings.SMTP_STARTTLS
        self.timeout = settings.SMTP_TIMEOUT_SECONDS
        self.sender = settings.MAIL_FROM

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.starttls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    async def send(self, to: str, subject: str, body_template: str, data: Mapping[str, Any]) -> None:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(render(body_template, data), subtype="html")

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"Email '{subject}' to {to} failed: {exc}")
            raise NotificationError(f"Failed to send email to {to}: {exc}") from exc
        logger.info(f"Email '{subject}' sent to {to}")


class ConsoleNotifier:
    """Logs messages instead of delivering them; keeps an outbox for inspection."""

    def __init__(self, sender: str = "reservations@localhost"):
        self.sender = sender
        self.sent: list[dict[str, Any]] = []

    async def send(self, to: str, subject: str, body_template: str, data: Mapping[str, Any]) -> None:
        body = render(body_template, data)
        self.sent.append({"from": self.sender, "to": to, "subject": subject, "body": body})
        logger.info(f"[console mail] from={self.sender} to={to} subject={subject!r}\n{body}")


def build_notifier(settings: Settings) -> Notifier:
    if settings.MAIL_BACKEND == "console":
        return ConsoleNotifier(sender=settings.MAIL_FROM)
    if settings.MAIL_BACKEND == "smtp":
        return SmtpNotifier(settings)
    raise ValueError(f"Unknown MAIL_BACKEND: {settings.MAIL_BACKEND!r}")


def format_date(value: date) -> str:
    """US short date, e.g. 5/1/2024."""
    return f"{value.month}/{value.day}/{value.year}"


_WRAPPER = """
<div style="font-family: 'Segoe UI', sans-serif; color: #333; padding: 20px;">
  <h2 style="color: #ff6f00;">$heading</h2>
  <p>Dear $guest_name,</p>
  $intro
  <div style="background-color: #f5f5f5; padding: 15px; border-radius: 5px; margin: 20px 0;">
    <h3 style="color: #ff6f00;">Reservation Details:</h3>
    $details
  </div>
  $closing
  <p>Best regards,<br>The $brand Team</p>
</div>
"""

CONFIRMATION_TEMPLATE = (
    _WRAPPER.replace("$heading", "$brand Reservation Confirmed!")
    .replace("$intro", "<p>Your reservation has been confirmed at $restaurant.</p>")
    .replace(
        "$details",
        "<p><strong>Date:</strong> $date</p>\n"
        "    <p><strong>Time:</strong> $time</p>\n"
        "    <p><strong>Number of Guests:</strong> $guests</p>\n"
        "    $special_requests_block",
    )
    .replace("$closing", "<p>Thank you for choosing $brand!</p>")
)

STATUS_UPDATE_TEMPLATE = (
    _WRAPPER.replace("$heading", "Reservation Status Update")
    .replace("$intro", "<p>Your reservation status has been updated to: <strong>$status</strong></p>")
    .replace(
        "$details",
        "<p><strong>Restaurant:</strong> $restaurant</p>\n"
        "    <p><strong>Date:</strong> $date</p>\n"
        "    <p><strong>Time:</strong> $time</p>\n"
        "    <p><strong>Number of Guests:</strong> $guests</p>",
    )
    .replace("$closing", "<p>Thank you for choosing $brand!</p>")
)

CANCELLATION_TEMPLATE = (
    _WRAPPER.replace("$heading", "Reservation Cancelled")
    .replace("$intro", "<p>Your reservation has been cancelled.</p>")
    .replace(
        "$details",
        "<p><strong>Restaurant:</strong> $restaurant</p>\n"
        "    <p><strong>Date:</strong> $date</p>\n"
        "    <p><strong>Time:</strong> $time</p>",
    )
    .replace("$closing", "<p>We hope to serve you again in the future!</p>")
)


class ReservationEmails:
    """Subjects, templates and data for each lifecycle notification."""

    def __init__(self, notifier: Notifier, brand: str = "ForkiFy"):
        self.notifier = notifier
        self.brand = brand

    def _base_data(self, reservation: Reservation) -> dict[str, Any]:
        return {
            "brand": self.brand,
            "guest_name": reservation.name,
            "restaurant": reservation.restaurant_name,
            "date": format_date(reservation.date),
            "time": reservation.time,
            "guests": reservation.number_of_guests,
        }

    async def send_confirmation(self, reservation: Reservation) -> None:
        data = self._base_data(reservation)
        # Pre-rendered so the optional block's markup is not escaped
        template = CONFIRMATION_TEMPLATE.replace(
            "$special_requests_block",
            "<p><strong>Special Requests:</strong> $special_requests</p>" if reservation.special_requests else "",
        )
        data["special_requests"] = reservation.special_requests
        await self.notifier.send(
            reservation.email, f"Reservation Confirmation - {self.brand}", template, data
        )

    async def send_status_update(self, reservation: Reservation) -> None:
        data = self._base_data(reservation)
        data["status"] = reservation.status
        await self.notifier.send(
            reservation.email, f"Reservation Update - {self.brand}", STATUS_UPDATE_TEMPLATE, data
        )

    async def send_cancellation(self, reservation: Reservation) -> None:
        await self.notifier.send(
            reservation.email,
            f"Reservation Cancelled - {self.brand}",
            CANCELLATION_TEMPLATE,
            self._base_data(reservation),
        )
