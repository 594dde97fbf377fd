import datetime
import itertools

import pytest

from scheduling.errors import InvalidInterval
from scheduling.overlap import overlaps

_INTERVALS = [
    (datetime.time(9), datetime.time(10)),
    (datetime.time(10), datetime.time(11)),
    (datetime.time(9, 30), datetime.time(10, 30)),
    (datetime.time(8), datetime.time(12)),
    (datetime.time(10), datetime.time(10)),
    (datetime.time(11), datetime.time(9)),
]


@pytest.mark.parametrize(('first', 'second', 'expected'), [
    ((datetime.time(9), datetime.time(10)), (datetime.time(10), datetime.time(11)), False),
    ((datetime.time(9), datetime.time(10, 30)), (datetime.time(10), datetime.time(11)), True),
    ((datetime.time(9), datetime.time(10)), (datetime.time(9), datetime.time(10)), True),
    ((datetime.time(8), datetime.time(12)), (datetime.time(9), datetime.time(10)), True),
    ((datetime.time(9), datetime.time(10)), (datetime.time(11), datetime.time(12)), False),
])
def test_overlaps(first: tuple[datetime.time, datetime.time], second: tuple[datetime.time, datetime.time],
                  expected: bool):
    assert overlaps(*first, *second) is expected


@pytest.mark.parametrize(('first', 'second'), itertools.product(_INTERVALS, repeat=2))
def test_overlaps_symmetric(first: tuple[datetime.time, datetime.time], second: tuple[datetime.time, datetime.time]):
    assert overlaps(*first, *second) == overlaps(*second, *first)


@pytest.mark.parametrize('interval', _INTERVALS)
def test_overlaps_itself_unless_empty(interval: tuple[datetime.time, datetime.time]):
    start, end = interval
    assert overlaps(start, end, start, end) is (start < end)


def test_empty_interval_inside_another():
    assert not overlaps(datetime.time(10), datetime.time(10), datetime.time(9), datetime.time(11))


def test_inverted_interval():
    assert not overlaps(datetime.time(11), datetime.time(9), datetime.time(9), datetime.time(11))


@pytest.mark.parametrize(('start', 'end'), [(datetime.time(10), datetime.time(10)),
                                            (datetime.time(11), datetime.time(9))])
def test_strict_rejects_invalid_interval(start: datetime.time, end: datetime.time):
    with pytest.raises(InvalidInterval):
        overlaps(start, end, datetime.time(9), datetime.time(11), strict=True)


def test_strict_accepts_valid_interval():
    assert overlaps(datetime.time(9), datetime.time(10), datetime.time(9, 30), datetime.time(11), strict=True)
