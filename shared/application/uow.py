"""
Unit of Work

One booking mutation = one database transaction. Domain events recorded
by the aggregates touched inside the block are handed to the message bus
from ``transaction.on_commit``, so a rolled back booking never produces a
notification.
"""

from typing import List, Optional
import logging

from django.db import DEFAULT_DB_ALIAS, transaction

from shared.domain.base import AggregateRoot, DomainEvent

logger = logging.getLogger(__name__)


class DjangoUnitOfWork:
    """
    ``transaction.atomic`` on one database alias plus an event outbox.

    Usage:
        with DjangoUnitOfWork(using='default') as uow:
            environment = environment_repo.get(environment_id, lock=True)
            booking = booking_repo.create(...)
            booking.record_created()
            uow.collect_events(booking)
        # BookingCreated reaches the bus once the outermost transaction commits

    Nested inside an outer ``atomic`` block the events wait for the outer
    commit, as ``on_commit`` does.
    """

    def __init__(self, using: str = DEFAULT_DB_ALIAS, bus=None):
        self.using = using
        self._bus = bus
        self._events: List[DomainEvent] = []
        self._atomic: Optional[transaction.Atomic] = None

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type is None:
                self._schedule_publication()
            else:
                logger.warning(
                    f"Transaction on '{self.using}' rolled back, "
                    f"dropping {len(self._events)} event(s): {exc_type.__name__}"
                )
        finally:
            self._events = []
            self._atomic.__exit__(exc_type, exc_val, exc_tb)

    def collect_events(self, aggregate: AggregateRoot):
        """Move the aggregate's pending events into this unit of work."""
        pending = aggregate.events
        if not pending:
            return
        self._events.extend(pending)
        aggregate.clear_events()
        logger.debug(f"Collected {len(pending)} event(s) from {type(aggregate).__name__} {aggregate.pk}")

    def _schedule_publication(self):
        if not self._events:
            return
        events = list(self._events)
        transaction.on_commit(lambda: self._publish(events), using=self.using)

    def _publish(self, events: List[DomainEvent]):
        bus = self._bus
        if bus is None:
            from shared.application.message_bus import message_bus as bus

        logger.info(f"Publishing {len(events)} event(s) after commit on '{self.using}'")
        bus.publish_events(events)
