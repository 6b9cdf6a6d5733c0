"""
Message Bus

Routes the scheduling requests (create, cancel, conflict preview, is-open)
to the handler wired for them, and booking events to their subscribers.
"""

from typing import Any, Callable, Dict, List, Type
import logging

from shared.domain.base import DomainEvent
from shared.domain.exceptions import SchedulingError

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class MessageBus:
    """
    Commands have exactly one handler, events any number of subscribers.

    A command handler's return value (the booking, a conflict report, a
    bool) is returned to the caller and its exceptions propagate. Event
    subscribers run after commit, so a failing subscriber is logged and
    skipped; the booking is already stored.
    """

    def __init__(self):
        self._command_handlers: Dict[Type, Callable[[Any], Any]] = {}
        self._subscribers: Dict[Type[DomainEvent], List[EventHandler]] = {}

    # --- commands ------------------------------------------------------------

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any],
        replace: bool = False,
    ):
        """``replace=True`` rewires a command, e.g. onto another database alias."""
        if command_type in self._command_handlers and not replace:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler
        logger.debug(f"Command {command_type.__name__} -> {getattr(handler, '__qualname__', handler)}")

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        name = type(command).__name__
        try:
            handler = self._command_handlers[type(command)]
        except KeyError:
            raise ValueError(f"No handler registered for {name}") from None

        try:
            result = handler(command)
        except SchedulingError as exc:
            logger.warning(f"{name} rejected: {type(exc).__name__}: {exc}")
            raise
        except Exception:
            logger.exception(f"{name} failed")
            raise
        logger.debug(f"{name} handled")
        return result

    # --- events --------------------------------------------------------------

    def register_event_handler(self, event_type: Type[DomainEvent], handler: EventHandler):
        """Subscribe ``handler``; subscribing the same callable twice has no effect."""
        subscribers = self._subscribers.setdefault(event_type, [])
        if handler not in subscribers:
            subscribers.append(handler)

    def publish_events(self, events: List[DomainEvent]):
        for event in events:
            event_name = type(event).__name__
            subscribers = self._subscribers.get(type(event), [])
            if not subscribers:
                logger.debug(f"{event_name} {event.event_id} has no subscribers")
                continue

            for handler in subscribers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        f"Subscriber {getattr(handler, '__name__', handler)!r} failed on "
                        f"{event_name} for aggregate {event.aggregate_id}"
                    )


# Process-wide bus, wired by apps.bookings.application.bootstrap
message_bus = MessageBus()
