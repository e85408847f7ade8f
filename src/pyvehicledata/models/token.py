"""Bearer token model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CredentialToken(BaseModel):
    """Bearer token obtained from a client-credentials exchange.

    Parameters
    ----------
    value : str
        Opaque bearer token.
    expires_at : float
        Instant (in the owning cache's clock) after which the token must
        not be used. Already includes the refresh safety margin.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    expires_at: float

    def is_usable(self, now: float) -> bool:
        """A token is usable iff ``now < expires_at``."""
        return now < self.expires_at
