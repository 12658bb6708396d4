from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"

DEFAULT_PALETTE = [
    "#FF6384",
    "#36A2EB",
    "#FFCE56",
    "#4BC0C0",
    "#9966FF",
    "#FF9F40",
    "#00A86B",
    "#8A2BE2",
    "#FFD700",
    "#DC143C",
    "#FF69B4",
]


@dataclass(frozen=True)
class ReportLayout:
    """Fixed presentation parameters shared by the chart and the workbook."""

    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))
    column_widths: list[int] = field(default_factory=lambda: [20, 15, 20, 15, 25, 20, 25, 25])
    header_fill: str = "1F4E78"
    header_font_color: str = "FFFFFF"
    header_height: float = 20
    date_format: str = "yyyy-mm-dd hh:mm"
    image_anchor: str = "J2"
    image_width: int = 400
    image_height: int = 300
    chart_figsize: tuple[float, float] = (6.0, 4.5)
    chart_dpi: int = 100


@dataclass(frozen=True)
class Settings:
    store_url: str = "http://localhost:5000/api"
    store_timeout: float = 10.0
    watch_interval_ms: int = 5000
    watch_fetch_limit: int = 100
    timezone: str = "UTC"
    layout: ReportLayout = field(default_factory=ReportLayout)

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def load_layout(path: Path | None = None) -> ReportLayout:
    path = path or CONFIG_DIR / "report_layout.yaml"
    if not path.exists():
        return ReportLayout()
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}

    defaults = ReportLayout()
    chart = data.get("chart") or {}
    image = data.get("image") or {}
    header = data.get("header") or {}
    palette = [str(color) for color in data.get("palette") or []] or defaults.palette
    widths = [int(width) for width in data.get("column_widths") or []] or defaults.column_widths
    figsize = chart.get("figsize") or defaults.chart_figsize
    return ReportLayout(
        palette=palette,
        column_widths=widths,
        header_fill=str(header.get("fill", defaults.header_fill)),
        header_font_color=str(header.get("font_color", defaults.header_font_color)),
        header_height=float(header.get("height", defaults.header_height)),
        date_format=str(data.get("date_format", defaults.date_format)),
        image_anchor=str(image.get("anchor", defaults.image_anchor)),
        image_width=int(image.get("width", defaults.image_width)),
        image_height=int(image.get("height", defaults.image_height)),
        chart_figsize=(float(figsize[0]), float(figsize[1])),
        chart_dpi=int(chart.get("dpi", defaults.chart_dpi)),
    )


def load_settings() -> Settings:
    timezone = (os.getenv("REPORT_TIMEZONE") or "UTC").strip() or "UTC"
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        timezone = "UTC"
    return Settings(
        store_url=(os.getenv("REQUEST_STORE_URL") or Settings.store_url).rstrip("/"),
        store_timeout=max(1.0, _float_env("REQUEST_STORE_TIMEOUT", Settings.store_timeout)),
        watch_interval_ms=max(100, _int_env("WATCH_INTERVAL_MS", Settings.watch_interval_ms)),
        watch_fetch_limit=max(1, _int_env("WATCH_FETCH_LIMIT", Settings.watch_fetch_limit)),
        timezone=timezone,
        layout=load_layout(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the settings for the process, read once from the environment."""

    return load_settings()
