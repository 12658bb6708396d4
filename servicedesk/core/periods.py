from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import Enum

MONTH_NAMES: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

QUARTER_MONTHS: dict[int, tuple[int, int, int]] = {
    1: (0, 1, 2),
    2: (3, 4, 5),
    3: (6, 7, 8),
    4: (9, 10, 11),
}


class PeriodUnit(str, Enum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True, order=True, slots=True)
class PeriodKey:
    """Calendar position of a record; ``month`` is zero based."""

    year: int
    month: int

    @property
    def quarter(self) -> int:
        return self.month // 3 + 1

    def window_start(self, unit: PeriodUnit) -> "PeriodKey":
        if unit is PeriodUnit.MONTH:
            return self
        if unit is PeriodUnit.QUARTER:
            return PeriodKey(self.year, QUARTER_MONTHS[self.quarter][0])
        return PeriodKey(self.year, 0)

    def label(self, unit: PeriodUnit) -> str:
        if unit is PeriodUnit.MONTH:
            return f"{MONTH_NAMES[self.month]} {self.year}"
        if unit is PeriodUnit.QUARTER:
            return f"Q{self.quarter} {self.year}"
        return str(self.year)


def period_key(moment: datetime, tz: tzinfo | None = None) -> PeriodKey:
    """Derive the period of a timestamp, converting aware values into ``tz``."""

    if tz is not None and moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    return PeriodKey(year=moment.year, month=moment.month - 1)


def parse_quarter(value: int | str) -> int:
    if isinstance(value, str):
        text = value.strip().upper().removeprefix("Q")
        if not text.isdigit():
            raise ValueError(f"invalid quarter: {value!r}")
        value = int(text)
    if value not in QUARTER_MONTHS:
        raise ValueError(f"quarter must be between 1 and 4, got {value!r}")
    return value


def quarter_months(quarter: int | str) -> tuple[int, int, int]:
    return QUARTER_MONTHS[parse_quarter(quarter)]


def month_index(name: str) -> int | None:
    """Return the zero based index of an English month name or abbreviation."""

    lowered = name.strip().lower()
    if not lowered:
        return None
    for index, month in enumerate(MONTH_NAMES):
        if lowered in (month.lower(), month.lower()[:3]):
            return index
    return None
