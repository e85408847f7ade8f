"""Bearer token cache for token-gated upstream APIs."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from pyvehicledata._constants import TOKEN_LIFETIME, TOKEN_SAFETY_MARGIN
from pyvehicledata._redact import redact_for_log
from pyvehicledata._transport import Transport
from pyvehicledata.exceptions import AuthError, TransportError
from pyvehicledata.models.token import CredentialToken

_logger = logging.getLogger(__name__)


class CredentialCache:
    """Hold one bearer token and refresh it only when it is no longer usable.

    One instance is created per process and shared by every request, so a
    warm process reuses its token across requests. A cold start always
    exchanges credentials on first use.

    With ``single_flight=True`` concurrent callers that observe an expired
    token wait for a single exchange instead of each issuing their own.
    With ``single_flight=False`` every such caller refreshes and the last
    writer wins; tokens are interchangeable so either mode is safe.
    """

    def __init__(
        self,
        transport: Transport,
        token_url: str,
        *,
        lifetime: float = TOKEN_LIFETIME,
        safety_margin: float = TOKEN_SAFETY_MARGIN,
        single_flight: bool = True,
        timeout: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if safety_margin >= lifetime:
            raise ValueError("safety_margin must be shorter than lifetime")
        self._transport = transport
        self._token_url = token_url
        self._lifetime = lifetime
        self._safety_margin = safety_margin
        self._single_flight = single_flight
        self._timeout = timeout
        self._clock = clock
        self._token: CredentialToken | None = None
        self._lock = asyncio.Lock()
        self.exchange_count = 0

    @property
    def token(self) -> CredentialToken | None:
        """The cached token, usable or not."""
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token (next call will exchange credentials)."""
        self._token = None

    def _usable_token(self) -> CredentialToken | None:
        token = self._token
        if token is not None and token.is_usable(self._clock()):
            return token
        return None

    async def get_token(self, client_id: str, client_secret: str, scope: str) -> CredentialToken:
        """Return a usable token, exchanging credentials if necessary.

        Raises
        ------
        AuthError
            The exchange request failed or its response has no ``access_token``.
        """
        token = self._usable_token()
        if token is not None:
            return token

        if not self._single_flight:
            return await self._refresh(client_id, client_secret, scope)

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock.
            token = self._usable_token()
            if token is not None:
                return token
            return await self._refresh(client_id, client_secret, scope)

    async def _refresh(self, client_id: str, client_secret: str, scope: str) -> CredentialToken:
        _logger.info("Token expired or missing, requesting a new one from %s", self._token_url)
        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": scope,
        }
        self.exchange_count += 1
        try:
            response = await self._transport.request_json(
                "POST",
                self._token_url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                form=form,
                timeout=self._timeout,
            )
        except TransportError as exc:
            raise AuthError(f"Failed to get Access Token: {exc}", endpoint=self._token_url) from exc

        _logger.debug("Token exchange response=%s", redact_for_log(response))
        value = response.get("access_token") if isinstance(response, dict) else None
        if not isinstance(value, str) or not value:
            raise AuthError("Failed to get Access Token", endpoint=self._token_url)

        token = CredentialToken(
            value=value,
            expires_at=self._clock() + (self._lifetime - self._safety_margin),
        )
        self._token = token
        return token
