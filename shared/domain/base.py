"""
Base Domain Classes

Building blocks shared by every scheduling context:
- ValueObject: Immutable objects compared by value
- DomainEvent: Something that happened, published after commit
- AggregateRoot: Mixin that lets an aggregate (including a Django model)
  record domain events until the unit of work collects them
"""

from abc import ABC
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects

    Value objects are immutable and have no identity.
    Two value objects are equal if all their attributes are equal.
    """
    pass


@dataclass(kw_only=True)
class DomainEvent:
    """
    Base class for domain events

    Domain events represent something that happened in the domain.
    They are handed to the message bus only after the transaction commits.
    """
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)
    aggregate_id: Any = None

    def to_dict(self) -> dict:
        """Convert event to dictionary for serialization"""
        return {
            'event_id': str(self.event_id),
            'event_type': self.__class__.__name__,
            'occurred_at': self.occurred_at.isoformat(),
            'aggregate_id': self.aggregate_id,
        }


class AggregateRoot:
    """
    Mixin for aggregate roots

    Aggregates are the consistency boundaries. They collect domain events
    that the unit of work publishes after a successful commit. The event
    list is created lazily so the mixin can sit on Django models, whose
    ``__init__`` we do not control.
    """

    @property
    def _pending_events(self) -> List[DomainEvent]:
        events = self.__dict__.get('_domain_events')
        if events is None:
            events = []
            self.__dict__['_domain_events'] = events
        return events

    def add_event(self, event: DomainEvent):
        """Add a domain event to be published"""
        self._pending_events.append(event)

    def clear_events(self):
        """Clear all collected events (called after collection)"""
        self._pending_events.clear()

    @property
    def events(self) -> List[DomainEvent]:
        """Get copy of collected events"""
        return list(self._pending_events)
