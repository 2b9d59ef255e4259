"""Cron expression parser and evaluator.

Supports standard cron syntax with an optional leading seconds field:
    - Second (0-59, only in 6-field expressions)
    - Minute (0-59)
    - Hour (0-23)
    - Day of month (1-31)
    - Month (1-12 or JAN-DEC)
    - Day of week (0-7 or SUN-SAT, where 0 and 7 are Sunday)

Special characters:
    - * (any value)
    - ? (any value, day fields only)
    - , (value list separator)
    - - (range of values)
    - / (step values)

Macros: @yearly, @annually, @monthly, @weekly, @daily, @midnight, @hourly

When both day of month and day of week are restricted, a day matches if
either field matches.

Examples:
    "*/5 * * * *" - Every 5 minutes
    "* * * * * *" - Every second
    "0 */2 * * *" - Every 2 hours
    "0 9 * * MON-FRI" - 9 AM on weekdays
    "0 0 1 * *" - First day of every month at midnight
"""

import re
from datetime import datetime, timedelta
from typing import Set

MACROS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}

MONTH_NAMES = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

WEEKDAY_NAMES = {
    "SUN": 0, "MON": 1, "TUE": 2, "WED": 3, "THU": 4, "FRI": 5, "SAT": 6,
}

# How far ahead next_run() searches before giving up
SEARCH_YEARS = 5


class CronExpression:
    """Parse and evaluate cron expressions."""

    def __init__(self, expression: str):
        """Initialize cron expression.

        Args:
            expression: Cron expression string (5 fields, 6 fields with
                leading seconds, or a macro such as "@daily")

        Raises:
            ValueError: If expression format is invalid
        """
        if not isinstance(expression, str):
            raise ValueError(
                f"Cron expression must be a string, got {type(expression).__name__}"
            )

        self.expression = expression.strip()
        normalized = MACROS.get(self.expression.lower(), self.expression)
        parts = normalized.split()

        if len(parts) not in (5, 6):
            raise ValueError(
                f"Invalid cron expression '{expression}'. "
                f"Expected 5 or 6 fields ([second] minute hour day month weekday), got {len(parts)}"
            )

        self.has_seconds = len(parts) == 6
        if not self.has_seconds:
            parts = ["0"] + parts

        self.second_field = parts[0]
        self.minute_field = parts[1]
        self.hour_field = parts[2]
        self.day_field = parts[3]
        self.month_field = parts[4]
        self.weekday_field = parts[5]

        self.seconds = self._parse_field(self.second_field, 0, 59)
        self.minutes = self._parse_field(self.minute_field, 0, 59)
        self.hours = self._parse_field(self.hour_field, 0, 23)
        self.days = self._parse_field(self._any(self.day_field), 1, 31)
        self.months = self._parse_field(self._names(self.month_field, MONTH_NAMES), 1, 12)
        self.weekdays = self._parse_weekday_field(
            self._names(self._any(self.weekday_field), WEEKDAY_NAMES)
        )

        self._day_restricted = not self._is_wildcard(self.day_field)
        self._weekday_restricted = not self._is_wildcard(self.weekday_field)

    @staticmethod
    def _any(field: str) -> str:
        return "*" if field == "?" else field

    @staticmethod
    def _is_wildcard(field: str) -> bool:
        return field == "?" or field.startswith("*")

    @staticmethod
    def _names(field: str, names: dict[str, int]) -> str:
        """Replace month or weekday names with their numbers."""

        def replace(match: re.Match) -> str:
            token = match.group(0).upper()
            if token not in names:
                raise ValueError(f"Unknown name '{match.group(0)}' in field '{field}'")
            return str(names[token])

        return re.sub(r"[A-Za-z]+", replace, field)

    def _parse_field(self, field: str, min_val: int, max_val: int) -> Set[int]:
        """Parse a cron field into a set of valid values.

        Args:
            field: Cron field string (e.g., "*/5", "1-10", "1,3,5")
            min_val: Minimum allowed value
            max_val: Maximum allowed value

        Returns:
            Set of valid integer values

        Raises:
            ValueError: If field format is invalid
        """
        if field == "*":
            return set(range(min_val, max_val + 1))

        values = set()

        for part in field.split(","):
            if "/" in part:
                # Step values: */5 or 10-20/2
                range_part, step = part.split("/")
                step_val = int(step)
                if step_val < 1:
                    raise ValueError(f"Invalid step: {part} (step must be positive)")

                if range_part == "*":
                    start, end = min_val, max_val
                elif "-" in range_part:
                    start_str, end_str = range_part.split("-")
                    start, end = int(start_str), int(end_str)
                else:
                    start = int(range_part)
                    end = max_val

                for val in range(start, end + 1, step_val):
                    if min_val <= val <= max_val:
                        values.add(val)

            elif "-" in part:
                # Range: 1-5
                start_str, end_str = part.split("-")
                start, end = int(start_str), int(end_str)

                if start > end:
                    raise ValueError(f"Invalid range: {part} (start > end)")

                for val in range(start, end + 1):
                    if min_val <= val <= max_val:
                        values.add(val)

            else:
                # Single value
                val = int(part)
                if min_val <= val <= max_val:
                    values.add(val)
                else:
                    raise ValueError(f"Value {val} out of range [{min_val}, {max_val}]")

        if not values:
            raise ValueError(f"Field '{field}' matches no value in [{min_val}, {max_val}]")

        return values

    def _parse_weekday_field(self, field: str) -> Set[int]:
        """Parse weekday field, treating both 0 and 7 as Sunday.

        Args:
            field: Weekday field string

        Returns:
            Set of valid weekday integers (0-6, where 0 is Sunday)
        """
        weekdays = self._parse_field(field, 0, 7)

        # Convert 7 (Sunday) to 0
        if 7 in weekdays:
            weekdays.remove(7)
            weekdays.add(0)

        return weekdays

    def _matches_day(self, dt: datetime) -> bool:
        # Python: Mon=0 ... Sun=6, cron: Sun=0, Mon=1 ... Sat=6
        cron_weekday = (dt.weekday() + 1) % 7
        day_ok = dt.day in self.days
        weekday_ok = cron_weekday in self.weekdays

        if self._day_restricted and self._weekday_restricted:
            return day_ok or weekday_ok
        return day_ok and weekday_ok

    def matches(self, dt: datetime) -> bool:
        """Check if datetime matches the cron expression.

        Args:
            dt: Datetime to check

        Returns:
            True if datetime matches the cron schedule
        """
        return (
            dt.second in self.seconds
            and dt.minute in self.minutes
            and dt.hour in self.hours
            and dt.month in self.months
            and self._matches_day(dt)
        )

    def next_run(self, after: datetime | None = None, end: datetime | None = None) -> datetime:
        """Calculate the next run time after the given datetime.

        Args:
            after: Starting datetime, exclusive (defaults to now)
            end: Exclusive upper bound for the result

        Returns:
            Next datetime matching the cron expression

        Raises:
            ValueError: If no occurrence exists before ``end`` or within
                the search horizon
        """
        if after is None:
            after = datetime.now()

        if self.has_seconds:
            current = after.replace(microsecond=0) + timedelta(seconds=1)
        else:
            current = after.replace(second=0, microsecond=0) + timedelta(minutes=1)

        limit = after + timedelta(days=366 * SEARCH_YEARS)

        while current <= limit:
            if end is not None and current >= end:
                raise ValueError(
                    f"No occurrence of cron expression '{self.expression}' "
                    f"between {after} and {end}"
                )

            if current.month not in self.months:
                if current.month == 12:
                    current = datetime(current.year + 1, 1, 1, tzinfo=current.tzinfo)
                else:
                    current = datetime(current.year, current.month + 1, 1, tzinfo=current.tzinfo)
                continue

            if not self._matches_day(current):
                current = current.replace(hour=0, minute=0, second=0) + timedelta(days=1)
                continue

            if current.hour not in self.hours:
                current = current.replace(minute=0, second=0) + timedelta(hours=1)
                continue

            if current.minute not in self.minutes:
                current = current.replace(second=0) + timedelta(minutes=1)
                continue

            if current.second not in self.seconds:
                current += timedelta(seconds=1)
                continue

            return current

        raise ValueError(
            f"Could not find next run time for cron expression '{self.expression}' "
            f"within {SEARCH_YEARS} years from {after}"
        )

    def __str__(self) -> str:
        """String representation."""
        return self.expression

    def __repr__(self) -> str:
        """Developer representation."""
        return f"CronExpression('{self.expression}')"
