"""Cron expressions with a seconds field, descriptors and fixed intervals."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

_SEARCH_YEARS = 5
_NANOS_PER_SECOND = 10**9


class CronParseError(ValueError):
    """Raised when a cron expression cannot be parsed."""


@dataclass(frozen=True)
class _Bounds:
    minimum: int
    maximum: int
    names: dict[str, int]


_MONTH_NAMES = {
    name: number
    for number, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}
_DOW_NAMES = {
    name: number
    for number, name in enumerate(("sun", "mon", "tue", "wed", "thu", "fri", "sat"))
}

_FIELDS = (
    _Bounds(0, 59, {}),
    _Bounds(0, 59, {}),
    _Bounds(0, 23, {}),
    _Bounds(1, 31, {}),
    _Bounds(1, 12, _MONTH_NAMES),
    _Bounds(0, 6, _DOW_NAMES),
)

_DESCRIPTORS = {
    "@yearly": "0 0 0 1 1 *",
    "@annually": "0 0 0 1 1 *",
    "@monthly": "0 0 0 1 * *",
    "@weekly": "0 0 0 * * 0",
    "@daily": "0 0 0 * * *",
    "@midnight": "0 0 0 * * *",
    "@hourly": "0 0 * * * *",
}

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": _NANOS_PER_SECOND,
    "m": 60 * _NANOS_PER_SECOND,
    "h": 3600 * _NANOS_PER_SECOND,
}
_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?([a-zµμ]+)")
_INTEGER = re.compile(r"[+-]?\d+")


@dataclass(frozen=True)
class CronSchedule:
    """A parsed schedule: either field sets or a fixed interval."""

    seconds: frozenset[int] = frozenset()
    minutes: frozenset[int] = frozenset()
    hours: frozenset[int] = frozenset()
    days_of_month: frozenset[int] = frozenset()
    months: frozenset[int] = frozenset()
    days_of_week: frozenset[int] = frozenset()
    dom_star: bool = False
    dow_star: bool = False
    location: tzinfo | None = None
    interval: timedelta | None = None

    def next(self, after: datetime) -> datetime | None:
        """Return the first activation strictly after the given time, or None within five years."""
        if self.interval is not None:
            return after.replace(microsecond=0) + self.interval
        if self.location is not None and after.tzinfo is not None:
            after = after.astimezone(self.location)

        moment = after.replace(microsecond=0) + timedelta(seconds=1)
        last_year = moment.year + _SEARCH_YEARS
        while moment.year <= last_year:
            if moment.month not in self.months:
                moment = _start_of_next_month(moment)
            elif not self._day_matches(moment):
                moment = moment.replace(hour=0, minute=0, second=0) + timedelta(days=1)
            elif moment.hour not in self.hours:
                moment = moment.replace(minute=0, second=0) + timedelta(hours=1)
            elif moment.minute not in self.minutes:
                moment = moment.replace(second=0) + timedelta(minutes=1)
            elif moment.second not in self.seconds:
                moment += timedelta(seconds=1)
            else:
                return moment
        return None

    def _day_matches(self, moment: datetime) -> bool:
        dom = moment.day in self.days_of_month
        dow = (moment.weekday() + 1) % 7 in self.days_of_week
        if self.dom_star or self.dow_star:
            return dom and dow
        return dom or dow


def _start_of_next_month(moment: datetime) -> datetime:
    first = moment.replace(day=1, hour=0, minute=0, second=0)
    if first.month == 12:
        return first.replace(year=first.year + 1, month=1)
    return first.replace(month=first.month + 1)


def _parse_int(text: str) -> int:
    if not _INTEGER.fullmatch(text):
        raise CronParseError(f"failed to parse int from {text}: invalid syntax")
    number = int(text)
    if number < 0:
        raise CronParseError(f"negative number ({number}) not allowed: {text}")
    return number


def _int_or_name(text: str, bounds: _Bounds) -> int:
    named = bounds.names.get(text.lower())
    if named is not None:
        return named
    return _parse_int(text)


def _parse_range(expr: str, bounds: _Bounds) -> tuple[set[int], bool]:
    range_and_step = expr.split("/")
    low_and_high = range_and_step[0].split("-")
    single = len(low_and_high) == 1

    if low_and_high[0] in ("*", "?"):
        start, end, star = bounds.minimum, bounds.maximum, True
    else:
        start = _int_or_name(low_and_high[0], bounds)
        if len(low_and_high) == 1:
            end = start
        elif len(low_and_high) == 2:
            end = _int_or_name(low_and_high[1], bounds)
        else:
            raise CronParseError(f"too many hyphens: {expr}")
        star = False

    if len(range_and_step) == 1:
        step = 1
    elif len(range_and_step) == 2:
        step = _parse_int(range_and_step[1])
        if single:
            end = bounds.maximum
        if step > 1:
            star = False
    else:
        raise CronParseError(f"too many slashes: {expr}")

    if start < bounds.minimum:
        raise CronParseError(
            f"beginning of range ({start}) below minimum ({bounds.minimum}): {expr}"
        )
    if end > bounds.maximum:
        raise CronParseError(f"end of range ({end}) above maximum ({bounds.maximum}): {expr}")
    if start > end:
        raise CronParseError(
            f"beginning of range ({start}) beyond end of range ({end}): {expr}"
        )
    if step == 0:
        raise CronParseError(f"step of range should be a positive number: {expr}")
    return set(range(start, end + 1, step)), star


def _parse_field(text: str, bounds: _Bounds) -> tuple[frozenset[int], bool]:
    values: set[int] = set()
    star = False
    for expr in text.split(","):
        part, part_star = _parse_range(expr, bounds)
        values |= part
        star = star or part_star
    return frozenset(values), star


def _parse_duration_nanos(text: str) -> int:
    body = text
    sign = 1
    if body and body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    if body == "0":
        return 0
    if not body:
        raise CronParseError(f"invalid duration {text!r}")
    total = 0
    position = 0
    while position < len(body):
        match = _DURATION_PART.match(body, position)
        if match is None or (not match.group(1) and not match.group(2)):
            raise CronParseError(f"invalid duration {text!r}")
        unit = _UNIT_NANOS.get(match.group(3))
        if unit is None:
            raise CronParseError(f"unknown unit {match.group(3)!r} in duration {text!r}")
        total += int(match.group(1) or 0) * unit
        fraction = match.group(2) or ""
        if fraction:
            total += int(fraction) * unit // 10 ** len(fraction)
        position = match.end()
    return sign * total


def _parse_descriptor(spec: str, location: tzinfo | None) -> CronSchedule:
    expansion = _DESCRIPTORS.get(spec)
    if expansion is not None:
        return _parse_fields(expansion, location)
    every = "@every "
    if spec.startswith(every):
        try:
            nanos = _parse_duration_nanos(spec[len(every):])
        except CronParseError as exc:
            raise CronParseError(f"failed to parse duration {spec}: {exc}") from exc
        if nanos < _NANOS_PER_SECOND:
            nanos = _NANOS_PER_SECOND
        return CronSchedule(interval=timedelta(seconds=nanos // _NANOS_PER_SECOND))
    raise CronParseError(f"unrecognized descriptor: {spec}")


def _parse_fields(spec: str, location: tzinfo | None) -> CronSchedule:
    parts = spec.split()
    if len(parts) != len(_FIELDS):
        raise CronParseError(
            f"expected exactly {len(_FIELDS)} fields, found {len(parts)}: [{' '.join(parts)}]"
        )
    parsed = [_parse_field(text, bounds) for text, bounds in zip(parts, _FIELDS)]
    (seconds, _), (minutes, _), (hours, _), (dom, dom_star), (months, _), (dow, dow_star) = parsed
    return CronSchedule(
        seconds=seconds,
        minutes=minutes,
        hours=hours,
        days_of_month=dom,
        months=months,
        days_of_week=dow,
        dom_star=dom_star,
        dow_star=dow_star,
        location=location,
    )


def parse(expression: str) -> CronSchedule:
    """Parse a six-field cron expression, a descriptor or '@every <duration>'."""
    if not expression:
        raise CronParseError("empty spec string")
    spec = expression
    location: tzinfo | None = None
    if spec.startswith(("TZ=", "CRON_TZ=")):
        head, _, rest = spec.partition(" ")
        name = head.split("=", 1)[1]
        try:
            location = ZoneInfo(name)
        except (KeyError, ValueError, OSError) as exc:
            raise CronParseError(f"provided bad location {name}: {exc}") from exc
        spec = rest.strip()
    if spec.startswith("@"):
        return _parse_descriptor(spec, location)
    return _parse_fields(spec, location)