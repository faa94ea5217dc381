import calendar
from datetime import datetime, timedelta, timezone
from itertools import islice

import pytest

from certbotmanager.cronexpr import CronParseError, parse

BASE = datetime(2024, 3, 10, 8, 15, 42)


def _times(schedule, start, count):
    def generate():
        moment = start
        while True:
            moment = schedule.next(moment)
            yield moment

    return list(islice(generate(), count))


def test_fixed_time_of_day():
    result = parse("0 30 9 * * *").next(BASE)
    assert (result.hour, result.minute, result.second) == (9, 30, 0)
    assert result.date() == BASE.date()


def test_next_is_strictly_after_matching_time():
    midnight = datetime(2024, 3, 10)
    assert parse("0 0 0 * * *").next(midnight) == midnight + timedelta(days=1)


@pytest.mark.parametrize(
    "descriptor, expansion",
    [
        ("@yearly", "0 0 0 1 1 *"),
        ("@annually", "0 0 0 1 1 *"),
        ("@monthly", "0 0 0 1 * *"),
        ("@weekly", "0 0 0 * * 0"),
        ("@daily", "0 0 0 * * *"),
        ("@midnight", "0 0 0 * * *"),
        ("@hourly", "0 0 * * * *"),
    ],
)
def test_descriptors_match_expansions(descriptor, expansion):
    assert _times(parse(descriptor), BASE, 3) == _times(parse(expansion), BASE, 3)


def test_step_over_seconds():
    times = _times(parse("*/15 * * * * *"), BASE, 6)
    assert all(t.second % 15 == 0 for t in times)
    assert all(b - a == timedelta(seconds=15) for a, b in zip(times, times[1:]))


def test_range_with_step():
    schedule = parse("10-20/5 * * * * *")
    times = _times(schedule, BASE.replace(second=0), 3)
    assert {t.second for t in times} == {10, 15, 20}
    assert all(t.minute == BASE.minute for t in times)


def test_names_match_numbers():
    assert _times(parse("0 0 0 * jan mon"), BASE, 5) == _times(parse("0 0 0 * 1 1"), BASE, 5)


def test_question_mark_is_wildcard():
    assert _times(parse("0 0 12 ? * ?"), BASE, 4) == _times(parse("0 0 12 * * *"), BASE, 4)


def test_day_of_month_or_day_of_week():
    times = _times(parse("0 0 0 13 * 5"), BASE, 12)
    assert all(t.day == 13 or t.weekday() == calendar.FRIDAY for t in times)
    assert any(t.day != 13 for t in times)
    assert any(t.day == 13 and t.weekday() != calendar.FRIDAY for t in times)


def test_day_of_month_with_star_weekday():
    times = _times(parse("0 0 0 13 * *"), BASE, 4)
    assert all(t.day == 13 for t in times)


def test_impossible_date_gives_none():
    assert parse("0 0 0 30 2 *").next(BASE) is None


def test_every_interval_truncates_to_seconds():
    after = BASE.replace(microsecond=123456)
    assert parse("@every 90s").next(after) == BASE + timedelta(seconds=90)


def test_every_compound_duration():
    assert parse("@every 1m30s").next(BASE) == parse("@every 90s").next(BASE)
    assert parse("@every 1.5h").next(BASE) == parse("@every 90m").next(BASE)


def test_every_below_one_second_is_one_second():
    assert parse("@every 500ms").next(BASE) == BASE + timedelta(seconds=1)


def test_time_zone_prefix():
    schedule = parse("TZ=UTC 0 0 12 * * *")
    after = datetime(2024, 3, 10, 8, 0, tzinfo=timezone(timedelta(hours=2)))
    result = schedule.next(after)
    assert result.hour == 12
    assert result.utcoffset() == timedelta(0)
    assert after < result < after + timedelta(days=1)
    assert parse("CRON_TZ=UTC 0 0 12 * * *").next(after) == result


def test_wrong_field_count_message():
    with pytest.raises(CronParseError, match="expected exactly 6 fields"):
        parse("0 0 * * *")


@pytest.mark.parametrize(
    "expression",
    [
        "",
        "60 * * * * *",
        "* * 24 * * *",
        "* * * 0 * *",
        "* * * * 13 *",
        "* * * * * 7",
        "5-1 * * * * *",
        "*/0 * * * * *",
        "1-2-3 * * * * *",
        "1/2/3 * * * * *",
        "x * * * * *",
        "-1 * * * * *",
        "* * * * foo *",
        "@fortnightly",
        "@every soon",
        "TZ=No/Such_Zone 0 0 0 * * *",
    ],
)
def test_invalid_expressions(expression):
    with pytest.raises(CronParseError):
        parse(expression)