"""UpdateToken — handed to a fetch callback for a single invocation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from saintmode.models.policy import ExpirationPolicy


@dataclass
class UpdateToken:
    """Lets a fetch callback veto caching or pick its own expiration.

    The cache reads the token once the callback returns: a cancelled token
    means the returned value is discarded, otherwise ``policy`` (when set)
    replaces the policy the caller passed to ``get_or_create``.
    """

    cancel_requested: bool = False
    policy: ExpirationPolicy | None = None

    def cancel(self) -> None:
        """Do not cache the value returned by this fetch."""
        self.cancel_requested = True

    def expire_at(self, policy: ExpirationPolicy | datetime) -> None:
        self.policy = ExpirationPolicy.coerce(policy)
