from __future__ import annotations

from datetime import datetime, tzinfo

import pandas as pd

from servicedesk.core.aggregator import REPORT_COLUMNS, flatten_rows
from servicedesk.core.errors import EmptyDataset
from servicedesk.domain import AggregationResult

CSV_MEDIA_TYPE = "text/csv"


def build_csv(aggregation: AggregationResult, *, tz: tzinfo | None = None) -> bytes:
    """Write the flattened report table, the same rows the workbook carries."""

    if aggregation.total_count == 0:
        raise EmptyDataset("no data to export for the selected period")

    def _cell(value: object) -> object:
        if isinstance(value, datetime):
            if value.tzinfo is not None and tz is not None:
                value = value.astimezone(tz)
            return value.strftime("%Y-%m-%d %H:%M")
        return value

    rows = [[_cell(value) for value in row] for row in flatten_rows(aggregation)]
    frame = pd.DataFrame(rows, columns=list(REPORT_COLUMNS))
    frame["Occurrences"] = frame["Occurrences"].astype("Int64")
    return frame.to_csv(index=False).encode("utf-8")
