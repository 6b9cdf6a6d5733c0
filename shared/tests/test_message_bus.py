from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.domain.base import AggregateRoot, DomainEvent
from shared.domain.exceptions import ValidationError


@dataclass(kw_only=True)
class SomethingHappened(DomainEvent):
    value: int


@dataclass(frozen=True)
class DoSomething:
    value: int


def test_command_is_routed_to_its_single_handler():
    bus = MessageBus()
    bus.register_command_handler(DoSomething, lambda command: command.value * 2)

    assert bus.handle_command(DoSomething(value=21)) == 42


def test_second_command_handler_requires_replace():
    bus = MessageBus()
    bus.register_command_handler(DoSomething, lambda command: 1)

    with pytest.raises(ValueError):
        bus.register_command_handler(DoSomething, lambda command: 2)

    bus.register_command_handler(DoSomething, lambda command: 2, replace=True)
    assert bus.handle_command(DoSomething(value=0)) == 2


def test_unregistered_command_raises():
    with pytest.raises(ValueError):
        MessageBus().handle_command(DoSomething(value=1))


def test_domain_errors_propagate_from_command_handlers():
    bus = MessageBus()

    def reject(command):
        raise ValidationError("nope", field="value")

    bus.register_command_handler(DoSomething, reject)
    with pytest.raises(ValidationError):
        bus.handle_command(DoSomething(value=1))


def test_failing_event_handler_does_not_stop_the_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.register_event_handler(SomethingHappened, broken)
    bus.register_event_handler(SomethingHappened, lambda event: seen.append(event.value))

    bus.publish_events([SomethingHappened(value=7)])

    assert seen == [7]


def test_registering_the_same_event_handler_twice_is_a_no_op():
    bus = MessageBus()
    seen = []

    def handler(event):
        seen.append(event.value)

    bus.register_event_handler(SomethingHappened, handler)
    bus.register_event_handler(SomethingHappened, handler)
    bus.publish_events([SomethingHappened(value=1)])

    assert seen == [1]


def test_aggregate_root_collects_and_clears_events():
    aggregate = AggregateRoot()
    aggregate.add_event(SomethingHappened(value=1))

    events = aggregate.events
    assert [event.value for event in events] == [1]
    assert events[0].to_dict()["event_type"] == "SomethingHappened"

    aggregate.clear_events()
    assert aggregate.events == []
