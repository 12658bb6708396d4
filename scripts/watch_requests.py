#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import logging

from servicedesk.application import ReportService
from servicedesk.core.schema import RequestRecord
from servicedesk.core.settings import get_settings
from servicedesk.infrastructure import HttpRequestStore


def _announce(record: RequestRecord) -> None:
    print(
        f"New request {record.id}: {record.issue} "
        f"({record.workgroup}, requested by {record.requested_by}, {record.status})"
    )


async def _watch(args: argparse.Namespace) -> None:
    settings = get_settings()
    store = HttpRequestStore(args.store_url or settings.store_url, timeout=settings.store_timeout)
    service = ReportService(store, settings)
    watcher = service.watch_for_new_requests(args.interval_ms, _announce)
    try:
        await asyncio.Event().wait()
    finally:
        await service.cancel(watcher)
        await store.aclose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print each new service request as it arrives")
    parser.add_argument("--interval-ms", type=int, help="Poll interval, defaults to WATCH_INTERVAL_MS")
    parser.add_argument("--store-url", help="Override REQUEST_STORE_URL")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(_watch(args))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
