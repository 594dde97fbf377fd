import datetime
import itertools
from collections.abc import Iterable

from aiogram.utils.formatting import Bold, Italic, Text, Underline, as_key_value, as_list, as_marked_section
from babel import dates

from dto import SessionDto, SpeakerDto
from utility import as_list_section


def make_date_string(date: datetime.date):
    return dates.format_date(date, 'EEE, dd.MM.yyyy', locale='en')


def make_time_string(session: SessionDto):
    return f'{session.start_time:%H:%M} - {session.end_time:%H:%M}'


def make_session_string(session: SessionDto, with_day: bool = False):
    time = make_time_string(session)
    if with_day:
        time = f'{make_date_string(session.date)} {time}'
    return as_key_value(Text(f'#{session.id} ', Bold(time)),
                        Text(session.title, ' (', Underline(session.location), ')'))


def make_speaker_string(speaker: SpeakerDto):
    parts: list[Text | str] = [Bold(speaker.name)]
    if speaker.speciality:
        parts.extend((', ', Italic(speaker.speciality)))
    if speaker.email:
        parts.append(f' <{speaker.email}>')
    return Text(f'#{speaker.id} ', *parts)


def render_speakers(speakers: Iterable[SpeakerDto]):
    return as_list_section('Speakers:', *map(make_speaker_string, speakers))


def render_speaker(speaker: SpeakerDto, sessions: Iterable[SessionDto]):
    booked = [make_session_string(session, with_day=True) for session in sessions]
    if not booked:
        return as_list(make_speaker_string(speaker), 'No upcoming sessions')
    return as_list(make_speaker_string(speaker), as_marked_section('Upcoming sessions:', *booked))


def render_sessions(sessions: Iterable[SessionDto]):
    days = itertools.groupby(sessions, lambda session: session.date)
    return as_list(*(
        as_list_section(Text('📆 ', make_date_string(date), ':'), *map(make_session_string, day_sessions))
        for date, day_sessions in days))
