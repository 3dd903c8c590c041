from datetime import UTC, datetime, timezone, timedelta

from backend.app.core.time import as_aware, utc_now, utc_today


def test_utc_now_is_timezone_aware_utc():
    value = utc_now()
    assert value.tzinfo is UTC


def test_utc_today_matches_utc_now():
    assert utc_today() == utc_now().date()


def test_as_aware_treats_naive_values_as_utc():
    naive = datetime(2030, 1, 1, 12, 0, 0)
    assert as_aware(naive) == datetime(2030, 1, 1, 12, 0, 0, tzinfo=UTC)
    assert as_aware(None) is None


def test_as_aware_keeps_existing_timezone():
    offset = timezone(timedelta(hours=-5))
    value = datetime(2030, 1, 1, 7, 0, 0, tzinfo=offset)
    assert as_aware(value) is value
