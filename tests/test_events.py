import logging

from hex_empires.game.events import EventBus, EventRecorder, GameEvent, GameEventType


def test_typed_listeners_run_before_catch_all(bus):
    order = []
    bus.subscribe(lambda e: order.append("all"))
    bus.subscribe(lambda e: order.append("typed"), GameEventType.CITY_FOUNDED)
    bus.publish(GameEventType.CITY_FOUNDED, city_id="city_1")
    assert order == ["typed", "all"]


def test_typed_listener_ignores_other_events(bus):
    seen = []
    bus.subscribe(seen.append, GameEventType.WAR_DECLARED)
    bus.publish(GameEventType.PEACE_MADE)
    assert seen == []


def test_publish_returns_event_with_payload(bus):
    event = bus.publish(GameEventType.UNIT_MOVED, unit_id="unit_1", to=(2, 3))
    assert isinstance(event, GameEvent)
    assert event["unit_id"] == "unit_1"
    assert event.to_dict() == {"type": "unit_moved", "payload": {"unit_id": "unit_1", "to": (2, 3)}}


def test_unsubscribe(bus):
    seen = []
    bus.subscribe(seen.append, GameEventType.GAME_OVER)
    assert bus.listener_count(GameEventType.GAME_OVER) == 1
    assert bus.unsubscribe(seen.append, GameEventType.GAME_OVER)
    assert not bus.unsubscribe(seen.append, GameEventType.GAME_OVER)
    bus.publish(GameEventType.GAME_OVER, winner_id=0)
    assert seen == []
    assert bus.listener_count(GameEventType.GAME_OVER) == 0


def test_listener_error_is_logged_not_raised(bus, caplog):
    def broken(event):
        raise RuntimeError("bad listener")

    recorder = EventRecorder()
    bus.subscribe(broken)
    bus.subscribe(recorder)
    with caplog.at_level(logging.WARNING):
        bus.publish(GameEventType.NEW_GAME)
    assert "bad listener" in caplog.text
    assert len(recorder.events) == 1


def test_recorder_filters_and_clears():
    bus = EventBus()
    recorder = EventRecorder(bus)
    bus.publish(GameEventType.CITY_GREW, population=2)
    bus.publish(GameEventType.CITY_STARVED, population=1)
    assert [e["population"] for e in recorder.of_type(GameEventType.CITY_GREW)] == [2]
    recorder.clear()
    assert recorder.events == []
