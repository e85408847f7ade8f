"""MOT, tax and insurance expiry reminders sent by SMS."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from pyvehicledata.exceptions import VehicleDataError
from pyvehicledata.models.reminder import ReminderRecipient, ReminderRequest
from pyvehicledata.services.notifications import NotificationService

_logger = logging.getLogger(__name__)

#: Days before expiry on which a reminder goes out.
REMINDER_LEAD_DAYS: frozenset[int] = frozenset({7, 14})


@dataclass(frozen=True)
class DueReminder:
    phone_number: str
    registration: str
    kind: str
    expiry: date
    days: int

    @property
    def message(self) -> str:
        return (
            f"Reminder: {self.kind} for {self.registration} expires in "
            f"{self.days} days ({self.expiry.isoformat()})."
        )


def due_reminders(
    recipients: Iterable[ReminderRecipient],
    today: date,
    *,
    lead_days: frozenset[int] = REMINDER_LEAD_DAYS,
) -> list[DueReminder]:
    """Reminders due *today* for recipients who opted in to SMS."""
    due: list[DueReminder] = []
    for recipient in recipients:
        phone_number = (recipient.phone_number or "").strip()
        if not phone_number or not recipient.sms_enabled:
            continue
        for vehicle in recipient.vehicles:
            for kind, expiry in (
                ("MOT", vehicle.mot_expiry),
                ("Tax", vehicle.tax_expiry),
                ("Insurance", vehicle.insurance_expiry),
            ):
                if expiry is None:
                    continue
                days = (expiry - today).days
                if days in lead_days:
                    due.append(
                        DueReminder(
                            phone_number=phone_number,
                            registration=vehicle.registration,
                            kind=kind,
                            expiry=expiry,
                            days=days,
                        )
                    )
    return due


class ReminderService:
    def __init__(self, notifications: NotificationService) -> None:
        self._notifications = notifications

    async def run(self, request: ReminderRequest, *, today: date | None = None) -> list[str]:
        """Send every due reminder and return a human-readable run log.

        A failed send, including one refused for missing SMS credentials,
        is recorded in the log and does not stop the run.
        """
        today = today or date.today()
        logs = [f"Checking {len(request.recipients)} recipients for {today.isoformat()}."]
        for reminder in due_reminders(request.recipients, today):
            logs.append(f"Triggering SMS for {reminder.registration} ({reminder.kind})")
            try:
                await self._notifications.send(reminder.phone_number, reminder.message)
            except VehicleDataError as exc:
                _logger.warning("Reminder for %s failed: %s", reminder.registration, exc)
                logs.append(str(exc))
            else:
                logs.append(f"SMS sent for {reminder.registration} ({reminder.kind})")
        return logs
