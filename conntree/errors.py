"""
Error types raised by the forest pipeline.

Only programmer errors are raised. Data that is merely incomplete (relations to
unknown users, users without relations) is handled by skip-or-default rules in
the builder and never surfaces here.
"""
from typing import Any, Optional


class ConnTreeError(ValueError):
    """Base class for all forest pipeline errors."""


class DuplicateEntityError(ConnTreeError):
    """The same entity identifier appeared more than once in the input."""

    def __init__(self, entity_id: int):
        self.entity_id = entity_id
        super().__init__(f"Duplicate entity identifier: {entity_id}")


class InvalidTimestampError(ConnTreeError):
    """A relation timestamp could not be parsed as ISO-8601."""

    def __init__(self, value: Any, actor_id: Optional[int] = None):
        self.value = value
        self.actor_id = actor_id
        where = f" (relation of actor {actor_id})" if actor_id is not None else ""
        super().__init__(f"Invalid ISO-8601 timestamp {value!r}{where}")


class SnapshotFormatError(ConnTreeError):
    """A snapshot document does not have the expected shape."""


class ConfigError(ConnTreeError):
    """Configuration values violate their constraints."""
