from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Sequence

from servicedesk.core.schema import RequestRecord
from servicedesk.core.validation import parse_records
from servicedesk.domain import WatchState

logger = logging.getLogger(__name__)

FetchLatest = Callable[[], Awaitable[Sequence[RequestRecord | Mapping[str, Any]]]]
OnNewRecord = Callable[[RequestRecord], None]


def _comparable(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class ChangeWatcher:
    """Poll a request feed and report each newly arrived head record once.

    The first tick after ``start`` only records a baseline.  Every later tick
    whose head has a different id and a later ``created_at`` than the previous
    head triggers ``on_new_record`` exactly once.  Ticks run as independent
    tasks so a slow fetch never delays the next one; results of a tick that
    finishes after a newer tick was applied are dropped.
    """

    def __init__(
        self,
        fetch_latest: FetchLatest | None = None,
        on_new_record: OnNewRecord | None = None,
    ) -> None:
        self.state = WatchState()
        self._fetch_latest = fetch_latest
        self._on_new_record = on_new_record
        self._interval = 0.0
        self._timer: asyncio.Task | None = None
        self._ticks: set[asyncio.Task] = set()
        self._issued = 0
        self._applied = 0
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def start(self, poll_interval_ms: int, fetch_latest: FetchLatest, on_new_record: OnNewRecord) -> None:
        """Begin polling; must be called from a running event loop."""

        if self.running:
            raise RuntimeError("watcher is already running")
        if poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive")

        self._fetch_latest = fetch_latest
        self._on_new_record = on_new_record
        self._interval = poll_interval_ms / 1000
        self.state = WatchState()
        self._issued = 0
        self._applied = 0
        self._timer = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the timer and any in-flight tick; nothing fires after this returns."""

        self._generation += 1
        pending = [task for task in (self._timer, *self._ticks) if task is not None]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._timer = None
        self._ticks.clear()

    async def poll_once(self) -> RequestRecord | None:
        """Run a single tick inline and return the record that was announced, if any."""

        self._issued += 1
        return await self._tick(self._issued, self._generation)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    async def _run(self) -> None:
        while True:
            self._issued += 1
            task = asyncio.create_task(self._tick(self._issued, self._generation))
            self._ticks.add(task)
            task.add_done_callback(self._ticks.discard)
            await asyncio.sleep(self._interval)

    async def _tick(self, sequence: int, generation: int) -> RequestRecord | None:
        if self._fetch_latest is None:
            raise RuntimeError("watcher has no feed configured")
        try:
            rows = await self._fetch_latest()
            parsed = parse_records(rows)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Request poll #%d failed, keeping previous state: %s", sequence, exc)
            return None

        if generation != self._generation or sequence < self._applied:
            logger.debug("Discarding stale poll #%d", sequence)
            return None
        self._applied = sequence
        if parsed.malformed:
            logger.info("Skipped %d malformed record(s) in poll #%d", len(parsed.malformed), sequence)
        records = parsed.records

        previous_id = self.state.last_seen_id
        previous_created_at = self.state.last_seen_created_at
        ordered = sorted(records, key=lambda record: _comparable(record.created_at), reverse=True)
        if not ordered:
            self.state.last_seen_id = None
            self.state.last_seen_created_at = None
            return None

        head = ordered[0]
        self.state.last_seen_id = head.id
        self.state.last_seen_created_at = head.created_at

        if previous_id is None or head.id == previous_id:
            return None
        if previous_created_at is not None and _comparable(head.created_at) <= _comparable(previous_created_at):
            return None

        self._notify(head)
        return head

    def _notify(self, record: RequestRecord) -> None:
        if self._on_new_record is None:
            return
        try:
            self._on_new_record(record)
        except Exception:
            logger.exception("New request callback failed for record %s", record.id)


__all__ = ["ChangeWatcher", "FetchLatest", "OnNewRecord"]
