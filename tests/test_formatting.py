import re
from datetime import datetime, timezone

import pytest

from bewijsje.formatting import (
    file_safe, file_stamp, format_datetime, format_duration, safe_file_part, to_number,
)

DURATION_RE = re.compile(r"^(\d+:)?\d{1,2}:\d{2}$")


@pytest.mark.parametrize("seconds, expected", [
    (0, "0:00"), (65, "1:05"), (599, "9:59"), (3599, "59:59"),
    (3600, "1:00:00"), (3661, "1:01:01"), (36000, "10:00:00"),
    (-5, "0:00"), (None, "0:00"), ("abc", "0:00"), (64.5, "1:05"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_duration_shape():
    for seconds in range(0, 20000, 37):
        assert DURATION_RE.match(format_duration(seconds))


def test_format_datetime_uses_configured_zone():
    moment = datetime(2025, 10, 27, 13, 5, tzinfo=timezone.utc)
    assert format_datetime(moment, "Europe/Brussels") == "27/10/2025 14:05"
    assert format_datetime(moment, "UTC") == "27/10/2025 13:05"


def test_file_stamp():
    assert file_stamp(datetime(2025, 3, 7, 9, 4)) == "20250307-0904"


def test_file_safe():
    assert file_safe(' a/b\\c:d*e?f"g<h>i|j ') == "abcdefghij"
    assert len(file_safe("x" * 200)) == 80
    assert file_safe(None) == ""


def test_safe_file_part():
    assert safe_file_part("  Eva De Smet!  ") == "Eva_De_Smet"
    assert safe_file_part("???") == "leerling"


def test_to_number():
    assert to_number("7") == 7
    assert isinstance(to_number("7.0"), int)
    assert to_number("7.5") == 7.5
    assert to_number(float("nan")) == 0
    assert to_number(None, default=3) == 3


def test_to_number_out_of_float_range():
    huge = int("1" + "0" * 400)
    assert to_number(huge) == 0
    assert to_number(-huge, default=5) == 5
    assert to_number("1e400") == 0
