import calendar
from datetime import date
from typing import NamedTuple


class MonthMarker(NamedTuple):
    """A calendar month, ``month`` running 1-12."""

    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "MonthMarker":
        return cls(day.year, day.month)

    @classmethod
    def from_legacy(cls, value: str) -> "MonthMarker":
        """Parse the old ``"{year}-{month}"`` marker, whose month was zero-based."""
        year_text, sep, month_text = value.strip().partition("-")
        if not sep:
            raise ValueError(f"Invalid month marker: {value!r}")
        year, month = int(year_text), int(month_text)
        if not 0 <= month <= 11:
            raise ValueError(f"Invalid month marker: {value!r}")
        return cls(year, month + 1)

    @property
    def last_day(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def clamp_day(self, day: int) -> date:
        return date(self.year, self.month, min(day, self.last_day))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"
