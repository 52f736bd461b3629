"""Bounded in-memory telemetry window shared by the simulator and the live link."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone

from pydantic import ValidationError

from app.schemas.telemetry import TelemetryMessage, TelemetryRecord

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 64


class TelemetryFeed:
    """Most-recent-N telemetry history plus fan-out to live subscribers.

    Records are kept newest first.  The latest message is last-write-wins;
    there is no ordering guarantee across messages beyond arrival order.
    """

    def __init__(self, maxlen: int = 201) -> None:
        if maxlen < 1:
            raise ValueError(f"maxlen must be >= 1, got {maxlen}")
        self._records: deque[TelemetryRecord] = deque(maxlen=maxlen)
        self._subscribers: set[asyncio.Queue[TelemetryMessage]] = set()
        self.latest: TelemetryMessage | None = None
        self.dropped: int = 0

    # ------------------------------------------------------------------
    # Ingest
    # ------------------------------------------------------------------

    def apply(self, message: TelemetryMessage) -> TelemetryRecord:
        """Store a validated message and notify subscribers."""
        self.latest = message
        record = TelemetryRecord(
            time=datetime.now(timezone.utc).strftime("%H:%M:%S"),
            voltage=message.v,
            current=message.i,
            power=message.p,
            battery_voltage=message.batt,
            mode=message.mode,
            warn=message.warn,
        )
        self._records.appendleft(record)
        self._publish(message)
        return record

    def ingest_raw(self, raw: str | bytes) -> TelemetryMessage | None:
        """Parse and store a raw JSON frame.

        Malformed frames are counted, logged and discarded without touching
        the stored state.
        """
        try:
            message = TelemetryMessage.model_validate_json(raw)
        except ValidationError as exc:
            self.dropped += 1
            logger.warning(
                "Discarding malformed telemetry frame (%d errors): %.80r",
                exc.error_count(), raw,
            )
            return None
        self.apply(message)
        return message

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def history(self) -> list[TelemetryRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        self._records.clear()
        self.latest = None

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self) -> asyncio.Queue[TelemetryMessage]:
        queue: asyncio.Queue[TelemetryMessage] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[TelemetryMessage]) -> None:
        self._subscribers.discard(queue)

    def _publish(self, message: TelemetryMessage) -> None:
        for queue in self._subscribers:
            if queue.full():
                # Slow consumer: drop its oldest frame
                queue.get_nowait()
            queue.put_nowait(message)
