import calendar
import datetime
from collections.abc import Collection

from aiogram.utils.formatting import Bold, Pre, Text, as_list, as_section
from babel import dates

BOOKED_MARK = '*'
PAST_MARK = '.'
_WEEKDAYS = ('Mo', 'Tu', 'We', 'Th', 'Fr', 'Sa', 'Su')


def month_starts(start: datetime.date, months: int):
    year, month = start.year, start.month
    for _ in range(months):
        yield datetime.date(year, month, 1)
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)  # noqa: PLR2004


def calendar_bounds(start: datetime.date, months: int):
    """First day of the month of `start` and the last day of the `months`-th month from it."""
    last_month = list(month_starts(start, months))[-1]
    _, days = calendar.monthrange(last_month.year, last_month.month)
    return start.replace(day=1), last_month.replace(day=days)


def _make_cell(day: datetime.date, booked: Collection[datetime.date], today: datetime.date):
    if day in booked:
        mark = BOOKED_MARK
    elif day <= today:
        mark = PAST_MARK
    else:
        mark = ' '
    return f'{day.day:>2}{mark}'


def render_month(first_day: datetime.date, booked: Collection[datetime.date], today: datetime.date):
    lines = [' '.join(f'{weekday} ' for weekday in _WEEKDAYS).rstrip()]
    for week in calendar.Calendar().monthdatescalendar(first_day.year, first_day.month):
        cells = (_make_cell(day, booked, today) if day.month == first_day.month else '   ' for day in week)
        lines.append(' '.join(cells).rstrip())
    header = Bold(dates.format_date(first_day, 'LLLL yyyy', locale='en'))
    return as_section(header, Pre('\n'.join(lines)))


def render_calendar(start: datetime.date, months: int, booked: Collection[datetime.date], today: datetime.date):
    sections = [render_month(first_day, booked, today) for first_day in month_starts(start, months)]
    legend = Text(f'{BOOKED_MARK} booked, {PAST_MARK} past')
    return as_list(*sections, legend, sep='\n\n')
