#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from servicedesk.application import ReportService
from servicedesk.core.settings import get_settings
from servicedesk.infrastructure import HttpRequestStore


async def _export(args: argparse.Namespace) -> Path:
    settings = get_settings()
    store = HttpRequestStore(args.store_url or settings.store_url, timeout=settings.store_timeout)
    service = ReportService(store, settings)
    try:
        if args.month_id:
            artifact = await service.export_monthly_report(args.year_id, args.month_id, args.format)
        elif args.quarter:
            artifact = await service.export_quarterly_report(args.year_id, args.quarter, args.format)
        else:
            artifact = await service.export_yearly_report(args.year_id, args.format)
    finally:
        await store.aclose()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / artifact.filename
    target.write_bytes(artifact.content)
    return target


def main() -> None:
    parser = argparse.ArgumentParser(description="Export a service request report to disk")
    parser.add_argument("--year-id", required=True, help="Identifier of the year in the request store")
    period = parser.add_mutually_exclusive_group()
    period.add_argument("--month-id", help="Export a single month")
    period.add_argument("--quarter", help="Export a quarter (1-4 or Q1-Q4)")
    parser.add_argument("--format", choices=("xlsx", "csv"), default="xlsx")
    parser.add_argument("--output-dir", default=".", help="Directory for the exported file")
    parser.add_argument("--store-url", help="Override REQUEST_STORE_URL")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    target = asyncio.run(_export(args))
    print(f"Wrote {target}")


if __name__ == "__main__":
    main()
