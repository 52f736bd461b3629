"""Tests for the telemetry feed and the controller link service objects."""

from __future__ import annotations

import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from app.schemas.telemetry import TelemetryMessage
from app.services.controller_link import ControllerLink
from app.services.telemetry_feed import SUBSCRIBER_QUEUE_SIZE, TelemetryFeed
from engine.mppt.commands import Command


def _msg(v: float) -> TelemetryMessage:
    return TelemetryMessage(v=v, i=1.0, p=v, batt=12.8, mode="SIM_MPPT", warn="OK")


class TestTelemetryFeed:
    def test_newest_first_and_bounded(self):
        feed = TelemetryFeed(maxlen=3)
        for v in range(5):
            feed.apply(_msg(float(v)))
        assert len(feed) == 3
        assert [r.voltage for r in feed.history()] == [4.0, 3.0, 2.0]
        assert feed.latest.v == 4.0

    def test_default_window(self):
        feed = TelemetryFeed()
        for v in range(250):
            feed.apply(_msg(float(v)))
        assert len(feed) == 201

    def test_record_fields(self):
        record = TelemetryFeed().apply(_msg(14.0))
        assert record.voltage == 14.0
        assert record.battery_voltage == 12.8
        assert len(record.time) == 8

    def test_ingest_raw(self):
        feed = TelemetryFeed()
        msg = feed.ingest_raw(json.dumps({"v": 3.0, "i": 2.0, "p": 6.0}))
        assert msg is not None
        assert msg.warn == "OFF"
        assert feed.latest == msg

    @pytest.mark.parametrize("raw", ["", "[]", "{\"v\": 1}", "{\"v\": \"x\", \"i\": 1, \"p\": 1}", b"\xff"])
    def test_malformed_frames_leave_state_untouched(self, raw):
        feed = TelemetryFeed()
        feed.apply(_msg(1.0))
        assert feed.ingest_raw(raw) is None
        assert feed.dropped == 1
        assert len(feed) == 1
        assert feed.latest.v == 1.0

    def test_null_optional_fields_take_defaults(self):
        feed = TelemetryFeed()
        msg = feed.ingest_raw(
            json.dumps({"v": 12.0, "i": 1.0, "p": 12.0, "batt": None, "mode": None, "warn": None, "sys": None})
        )
        assert msg is not None
        assert msg.batt == 0.0
        assert (msg.mode, msg.warn, msg.sys) == ("OFF", "OFF", "OFF")
        assert feed.dropped == 0

    def test_null_required_field_dropped(self):
        feed = TelemetryFeed()
        assert feed.ingest_raw(json.dumps({"v": None, "i": 1.0, "p": 1.0})) is None
        assert feed.dropped == 1

    def test_clear(self):
        feed = TelemetryFeed()
        feed.apply(_msg(1.0))
        feed.clear()
        assert len(feed) == 0
        assert feed.latest is None

    def test_invalid_maxlen(self):
        with pytest.raises(ValueError):
            TelemetryFeed(maxlen=0)

    @pytest.mark.asyncio
    async def test_subscribers_receive_messages(self):
        feed = TelemetryFeed()
        queue = feed.subscribe()
        feed.apply(_msg(2.0))
        received = await asyncio.wait_for(queue.get(), timeout=1.0)
        assert received.v == 2.0

        feed.unsubscribe(queue)
        feed.apply(_msg(3.0))
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_oldest(self):
        feed = TelemetryFeed()
        queue = feed.subscribe()
        for v in range(SUBSCRIBER_QUEUE_SIZE + 3):
            feed.apply(_msg(float(v)))
        assert queue.qsize() == SUBSCRIBER_QUEUE_SIZE
        assert queue.get_nowait().v == 3.0


class TestControllerLink:
    @pytest.mark.asyncio
    async def test_send_while_disconnected_is_noop(self):
        link = ControllerLink()
        assert link.connected is False
        assert await link.send_command(Command.ALL_OFF) is False

    @pytest.mark.asyncio
    async def test_failed_send_drops_link(self):
        link = ControllerLink()
        socket = _BrokenSocket()
        link.attach(socket)
        assert link.connected is True
        assert await link.send_command(Command.BOOST_ON) is False
        assert socket.attempts == 1
        assert link.connected is False


class _BrokenSocket:
    """Connected socket whose sends fail."""

    client_state = WebSocketState.CONNECTED

    def __init__(self) -> None:
        self.attempts = 0

    async def send_text(self, data: str) -> None:
        self.attempts += 1
        raise RuntimeError("socket closed")
