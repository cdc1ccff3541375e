"""Cache domain models."""

from saintmode.models.item import CacheItem
from saintmode.models.policy import ExpirationPolicy
from saintmode.models.token import UpdateToken

__all__ = [
    "CacheItem",
    "ExpirationPolicy",
    "UpdateToken",
]
