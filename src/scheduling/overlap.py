import datetime

from .errors import InvalidInterval


def overlaps(start_a: datetime.time, end_a: datetime.time,  # noqa: PLR0913
             start_b: datetime.time, end_b: datetime.time, strict: bool = False):
    """Check whether half-open intervals [start_a, end_a) and [start_b, end_b) intersect.

    Touching intervals do not overlap. An empty or inverted interval overlaps nothing,
    unless `strict` is set, in which case it raises `InvalidInterval`.
    """
    if start_a >= end_a or start_b >= end_b:
        if strict:
            msg = f'Invalid interval: [{start_a}, {end_a}) and [{start_b}, {end_b})'
            raise InvalidInterval(msg)
        return False
    return start_a < end_b and start_b < end_a
