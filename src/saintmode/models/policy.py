"""ExpirationPolicy — absolute expiration of a freshness window."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, field_validator


class ExpirationPolicy(BaseModel):
    """When a freshness window ends.

    ``absolute_expiration=None`` means the window never ends. A plain
    ``datetime`` is accepted anywhere a policy is and means the same thing as
    ``ExpirationPolicy(absolute_expiration=...)``.
    """

    model_config = ConfigDict(frozen=True)

    absolute_expiration: datetime | None = None

    @field_validator("absolute_expiration")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @classmethod
    def infinite(cls) -> ExpirationPolicy:
        return cls()

    @classmethod
    def after(cls, seconds: float) -> ExpirationPolicy:
        """Policy expiring *seconds* from now."""
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        return cls(absolute_expiration=datetime.now(timezone.utc) + timedelta(seconds=seconds))

    @classmethod
    def coerce(cls, value: ExpirationPolicy | datetime) -> ExpirationPolicy:
        """Normalise a policy or an absolute ``datetime`` to a policy."""
        if isinstance(value, ExpirationPolicy):
            return value
        if isinstance(value, datetime):
            return cls(absolute_expiration=value)
        raise TypeError(
            f"policy must be an ExpirationPolicy or datetime, got {type(value).__name__}"
        )

    @property
    def is_infinite(self) -> bool:
        return self.absolute_expiration is None

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.absolute_expiration is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.absolute_expiration
