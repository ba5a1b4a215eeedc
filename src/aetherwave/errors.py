"""Domain errors raised by progression services.

Each is raised before any state change. Routers translate them to HTTP
responses; workers log and skip. Expected non-fatal outcomes such as
insufficient credits or an active cooldown are returned as values, not
raised.
"""

from __future__ import annotations


class ProgressionError(Exception):
    """Base class for recoverable progression errors."""


class NotFoundError(ProgressionError):
    """A referenced entity does not exist."""


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class ArtistCardNotFoundError(NotFoundError):
    def __init__(self, card_id: int) -> None:
        super().__init__(f"Artist card {card_id} not found")
        self.card_id = card_id


class OwnershipViolationError(ProgressionError):
    """The caller does not own the artist card."""

    def __init__(self, card_id: int, user_id: int) -> None:
        super().__init__(f"Artist card {card_id} does not belong to user {user_id}")
        self.card_id = card_id
        self.user_id = user_id


class InvalidTierError(ProgressionError):
    """Tier name is not one of the configured subscription tiers."""

    def __init__(self, tier: str) -> None:
        super().__init__(f"Invalid subscription tier: {tier}")
        self.tier = tier
