"""Outbound SMS notifications."""

from __future__ import annotations

import logging
from typing import Any

from pyvehicledata._api.twilio import send_sms
from pyvehicledata._transport import Transport
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import RequestValidationError, VehicleDataConfigError

_logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, config: VehicleDataConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def send(self, to: Any, body: Any) -> dict[str, Any]:
        """Send *body* to the phone number *to*.

        Raises
        ------
        RequestValidationError
            *to* or *body* is missing.
        VehicleDataConfigError
            Twilio credentials are not configured.
        NotificationError
            Twilio rejected the message.
        """
        if not isinstance(to, str) or not to.strip() or not isinstance(body, str) or not body.strip():
            raise RequestValidationError("Missing parameters")
        if not self._config.has_sms_credentials:
            raise VehicleDataConfigError("Server misconfigured: Missing Keys")
        response = await send_sms(self._config, self._transport, to=to.strip(), body=body)
        _logger.info("SMS sent to %s", _mask_number(to))
        return response


def _mask_number(number: str) -> str:
    digits = number.strip()
    if len(digits) <= 4:
        return "****"
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"
