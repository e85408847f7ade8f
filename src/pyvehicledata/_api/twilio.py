"""Twilio Messages endpoint: /2010-04-01/Accounts/{sid}/Messages.json."""

from __future__ import annotations

import logging
from typing import Any

from pyvehicledata._transport import Transport
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import NotificationError, TransportError

_logger = logging.getLogger(__name__)


def messages_url(config: VehicleDataConfig) -> str:
    return f"{config.twilio_base_url.rstrip('/')}/2010-04-01/Accounts/{config.twilio_account_sid}/Messages.json"


async def send_sms(
    config: VehicleDataConfig,
    transport: Transport,
    *,
    to: str,
    body: str,
) -> dict[str, Any]:
    """Send one SMS; basic auth with the account SID, form-encoded body.

    Raises
    ------
    NotificationError
        Twilio rejected the message or could not be reached.
    """
    form = {"To": to, "From": config.twilio_from_number, "Body": body}
    try:
        response = await transport.request_json(
            "POST",
            messages_url(config),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            form=form,
            auth=(config.twilio_account_sid, config.twilio_auth_token),
            timeout=config.source_timeout,
        )
    except TransportError as exc:
        raise NotificationError(f"Twilio Error: {exc}") from exc
    _logger.debug("SMS queued sid=%s", response.get("sid") if isinstance(response, dict) else None)
    return response if isinstance(response, dict) else {}
