from __future__ import annotations

import pytest

from src.shiftbot.shiftbot.common.datetime_utils import FixedClock, format_duration, format_ts, parse_before_date
from src.shiftbot.shiftbot.common.validators import clamp_limit, parse_id_list
from src.shiftbot.shiftbot.core.exceptions import ValidationError


def test_parse_before_date_is_utc_midnight():
    assert parse_before_date("2024-01-02") == 1704153600
    assert parse_before_date(" 1970-01-01 ") == 0


@pytest.mark.parametrize("value", ["2024-13-01", "yesterday", ""])
def test_parse_before_date_rejects_garbage(value):
    with pytest.raises(ValidationError):
        parse_before_date(value)


def test_format_duration():
    assert format_duration(0) == "0h 0m 0s"
    assert format_duration(3725) == "1h 2m 5s"
    assert format_duration(-5) == "0h 0m 0s"


def test_format_ts():
    assert format_ts(None) == "-"
    assert format_ts(86400) == "1970-01-02 00:00 UTC"
    assert format_ts(86400, with_time=False) == "1970-01-02"


def test_fixed_clock():
    clock = FixedClock(10)
    assert clock.advance(5) == 15
    clock.set(3)
    assert clock.now() == 3


def test_parse_id_list():
    assert parse_id_list("1, 2,,3") == [1, 2, 3]
    with pytest.raises(ValidationError):
        parse_id_list("1,abc")
    with pytest.raises(ValidationError):
        parse_id_list(" , ")


def test_clamp_limit():
    assert clamp_limit(None, default=20, maximum=100) == 20
    assert clamp_limit(-1, default=20, maximum=100) == 20
    assert clamp_limit(500, default=20, maximum=100) == 100
