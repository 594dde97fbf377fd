import datetime
from collections.abc import Iterable

from aiogram.types import User
from aiogram.utils.formatting import Text, as_list, as_section


def format_user(user: User | None):
    if user is None:
        return 'Unknown'
    return f'{user.first_name} {user.last_name} <{user.username}> ({user.id})'


def as_list_section(header: Text | str, *body: Text | str):
    return as_section(header, as_list(*body))


def parse_date(date_str: str):
    return datetime.datetime.strptime(date_str, '%d.%m.%Y').replace(tzinfo=datetime.UTC).date()


def parse_time(time_str: str):
    return datetime.datetime.strptime(time_str, '%H:%M').replace(tzinfo=datetime.UTC).time()


def assert_not_nones[T](iterable: Iterable[T | None]):
    return map(cast_not_none, iterable)


def cast_not_none[T](value: T | None) -> T:
    if value is None:
        msg = 'Value is None'
        raise TypeError(msg)
    return value
