from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from io import BytesIO
from typing import Sequence

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure

from servicedesk.core.errors import EmptyDataset
from servicedesk.core.settings import ReportLayout
from servicedesk.domain import AggregationResult, ChartSlice


def _percentage(value: int, total: int) -> float:
    ratio = Decimal(value * 100) / Decimal(total)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def project(aggregation: AggregationResult) -> list[ChartSlice]:
    """One slice per issue group, in group order."""

    total = aggregation.total_count
    if total == 0:
        return []
    return [
        ChartSlice(label=group.issue, value=group.count, percentage=_percentage(group.count, total))
        for group in aggregation.groups
    ]


def slice_colors(slices: Sequence[ChartSlice], palette: Sequence[str]) -> list[str]:
    if not palette:
        raise ValueError("palette must contain at least one colour")
    return [palette[index % len(palette)] for index in range(len(slices))]


def rasterize(slices: Sequence[ChartSlice], layout: ReportLayout | None = None) -> bytes:
    """Render the slices as a PNG pie chart with a bottom legend."""

    if not slices:
        raise EmptyDataset("no data to chart for the selected period")
    layout = layout or ReportLayout()

    figure = Figure(figsize=layout.chart_figsize, dpi=layout.chart_dpi)
    FigureCanvasAgg(figure)
    axes = figure.add_axes((0.1, 0.3, 0.8, 0.65))
    wedges, _ = axes.pie(
        [item.value for item in slices],
        colors=slice_colors(slices, layout.palette),
        startangle=90,
        counterclock=False,
        wedgeprops={"linewidth": 1, "edgecolor": "white"},
    )
    axes.set_aspect("equal")

    for wedge, item in zip(wedges, slices):
        middle = math.radians((wedge.theta1 + wedge.theta2) / 2)
        axes.text(
            0.65 * math.cos(middle),
            0.65 * math.sin(middle),
            f"{item.percentage:.1f}%",
            ha="center",
            va="center",
            fontsize=9,
            fontweight="bold",
            color="#1f2937",
        )

    figure.legend(
        wedges,
        [item.label for item in slices],
        loc="lower center",
        ncol=min(3, len(slices)),
        frameon=False,
        fontsize=8,
    )

    buffer = BytesIO()
    figure.savefig(buffer, format="png", dpi=layout.chart_dpi, metadata={"Software": None})
    return buffer.getvalue()
