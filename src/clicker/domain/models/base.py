"""
Base domain model classes.

Purpose
-------
Provide the foundational abstractions the game aggregate builds on:
identity, domain events, and small validation helpers.

Responsibilities
----------------
- Define the base Entity class with identity and equality semantics
- Define the AggregateRoot consistency boundary
- Track domain events so the session engine can publish them after commit
- Provide validation helpers for business invariants

Non-Responsibilities
--------------------
- Persistence (handled by the persistence gateway)
- Event delivery (handled by the event bus)

Usage Example
-------------
>>> class Counter(AggregateRoot):
...     def __init__(self, counter_id: str):
...         super().__init__(counter_id)
...         self.value = 0
...
...     def bump(self) -> None:
...         self.value += 1
...         self.add_domain_event("counter.bumped", {"value": self.value})
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ============================================================================
# DOMAIN EVENTS
# ============================================================================


@dataclass
class DomainEvent:
    """
    Represents a domain event that has occurred.

    Attributes
    ----------
    event_name : str
        Event name (e.g., "upgrade.purchased")
    payload : Dict[str, Any]
        Event payload with relevant data
    occurred_at : datetime
        When the event occurred (UTC)
    """

    event_name: str
    payload: Dict[str, Any]
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# ENTITY / AGGREGATE ROOT
# ============================================================================


class Entity(ABC):
    """
    Base class for entities with identity.

    Two entities with the same ID are the same entity even if their
    attributes differ.
    """

    def __init__(self, entity_id: str) -> None:
        self._id = entity_id
        self._domain_events: List[DomainEvent] = []

    @property
    def id(self) -> str:
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def add_domain_event(self, event_name: str, payload: Dict[str, Any]) -> None:
        """
        Record a domain event to be published after the mutation commits.

        Examples
        --------
        >>> self.add_domain_event("battery.drained", {"amount": 5})
        """
        self._domain_events.append(DomainEvent(event_name=event_name, payload=payload))

    def clear_domain_events(self) -> List[DomainEvent]:
        """Clear and return all pending domain events."""
        events = self._domain_events.copy()
        self._domain_events.clear()
        return events

    def get_pending_events(self) -> List[DomainEvent]:
        return self._domain_events.copy()


class AggregateRoot(Entity):
    """
    Base class for aggregate roots.

    The aggregate root is the only entry point for mutations of the cluster
    it owns, and it alone is responsible for the cluster's invariants.
    """

    pass


# ============================================================================
# DOMAIN MODEL VALIDATION
# ============================================================================


class DomainValidationError(Exception):
    """Raised when a domain model invariant would be violated."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_positive(value: int, field_name: str) -> None:
    """
    Raises
    ------
    DomainValidationError
        If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DomainValidationError(
            f"{field_name} must be a positive integer, got {value!r}",
            field=field_name,
        )


def validate_non_negative(value: int, field_name: str) -> None:
    """
    Raises
    ------
    DomainValidationError
        If value is negative or not an integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DomainValidationError(
            f"{field_name} must be a non-negative integer, got {value!r}",
            field=field_name,
        )


def validate_not_empty(value: str, field_name: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError(
            f"{field_name} cannot be empty",
            field=field_name,
        )
