from __future__ import annotations

import re
from datetime import datetime, tzinfo
from io import BytesIO

from openpyxl import Workbook
from openpyxl.drawing.image import Image
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from servicedesk.core.aggregator import REPORT_COLUMNS, flatten_rows
from servicedesk.core.errors import EmptyDataset
from servicedesk.core.settings import ReportLayout
from servicedesk.domain import AggregationResult

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_INVALID_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


def report_filename(kind: str, *parts: object, extension: str = "xlsx") -> str:
    """Build e.g. ``Monthly_Report_January_2024.xlsx`` from the period parts."""

    tokens = [f"{kind.strip().capitalize()}_Report"]
    tokens.extend(re.sub(r"\s+", "_", str(part).strip()) for part in parts if str(part).strip())
    return f"{'_'.join(tokens)}.{extension}"


def _sheet_title(title: str) -> str:
    cleaned = _INVALID_TITLE_CHARS.sub(" ", title).strip()
    return (cleaned or "Report")[:31]


def _excel_datetime(value: datetime, tz: tzinfo | None) -> datetime:
    if value.tzinfo is None:
        return value
    if tz is not None:
        value = value.astimezone(tz)
    return value.replace(tzinfo=None)


def build_workbook(
    title: str,
    aggregation: AggregationResult,
    chart_image: bytes,
    layout: ReportLayout | None = None,
    *,
    tz: tzinfo | None = None,
) -> bytes:
    if aggregation.total_count == 0:
        raise EmptyDataset("no data to export for the selected period")
    layout = layout or ReportLayout()

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = _sheet_title(title)
    workbook.properties.title = title

    sheet.append(list(REPORT_COLUMNS))
    header_font = Font(bold=True, color=layout.header_font_color)
    header_fill = PatternFill(fill_type="solid", fgColor=layout.header_fill)
    header_alignment = Alignment(horizontal="center", vertical="center")
    for cell in sheet[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
    sheet.row_dimensions[1].height = layout.header_height

    for column, width in enumerate(layout.column_widths[: len(REPORT_COLUMNS)], start=1):
        sheet.column_dimensions[get_column_letter(column)].width = width

    date_columns = (REPORT_COLUMNS.index("Date Requested") + 1, REPORT_COLUMNS.index("Date Accomplished") + 1)
    for row in flatten_rows(aggregation):
        values = [_excel_datetime(value, tz) if isinstance(value, datetime) else value for value in row]
        sheet.append(values)
        for column in date_columns:
            sheet.cell(row=sheet.max_row, column=column).number_format = layout.date_format

    image = Image(BytesIO(chart_image))
    image.width = layout.image_width
    image.height = layout.image_height
    sheet.add_image(image, layout.image_anchor)

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
