import datetime
import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder
from sqlalchemy.exc import SQLAlchemyError

from data.repository import SessionRepository
from scheduling.availability import AvailabilityService
from scheduling.commit import AssignmentCommitService
from scheduling.errors import Rejection, SchedulingError
from utility import format_user, parse_date, parse_time
from view import calendar, schedule

DEFAULT_MONTHS = 2
MAX_MONTHS = 12
PAST_DATE_MESSAGE = 'Date must be in the future'

_LOGGER = logging.getLogger(__name__)


def _today():
    return datetime.datetime.now(datetime.UTC).date()


async def handle_available(message: Message, command: CommandObject, availability: AvailabilityService):
    args = (command.args or '').split()
    try:
        speaker_id = int(args[0])
        date = parse_date(args[1])
        if len(args) == 4:  # noqa: PLR2004
            start, end = parse_time(args[2]), parse_time(args[3])
        elif len(args) == 2:  # noqa: PLR2004
            start = end = None
        else:
            raise ValueError(args)
    except (IndexError, ValueError):
        _LOGGER.warning('User %s sent invalid availability query %s', format_user(message.from_user), command.args)
        await message.answer('Usage: /available <speaker> <DD.MM.YYYY> [HH:MM HH:MM]')
        return
    if date <= _today():
        await message.answer(PAST_DATE_MESSAGE)
        return
    try:
        if start is None or end is None:
            result = await availability.is_date_available(speaker_id, date)
        else:
            result = await availability.is_available(speaker_id, date, start, end)
    except (SchedulingError, SQLAlchemyError):
        _LOGGER.exception('Failed to check availability of speaker %d on %s', speaker_id, date)
        await message.answer('Could not check availability, try again later')
        return
    await message.answer(result.message)


async def handle_book(message: Message, command: CommandObject, session_repository: SessionRepository,
                      commit_service: AssignmentCommitService):
    args = (command.args or '').split()
    try:
        speaker_id, session_id = int(args[0]), int(args[1])
    except (IndexError, ValueError):
        _LOGGER.warning('User %s sent invalid booking command %s', format_user(message.from_user), command.args)
        await message.answer('Usage: /book <speaker> <session>')
        return
    await message.answer(await _book(speaker_id, session_id, session_repository, commit_service))


async def handle_book_query(callback: CallbackQuery, session_repository: SessionRepository,
                            commit_service: AssignmentCommitService):
    message = callback.message
    if message is None or isinstance(message, InaccessibleMessage):
        await callback.answer('Message is too old')
        return
    query = callback.data
    assert query is not None
    try:
        ids = [int(part) for part in query.split('#')[1:]]
    except ValueError:
        _LOGGER.exception('Invalid booking query %s', query)
        await callback.answer('Something went wrong')
        return
    match ids:
        case [speaker_id]:
            await callback.answer()
            await _offer_sessions(message, speaker_id, session_repository)
        case [speaker_id, session_id]:
            text = await _book(speaker_id, session_id, session_repository, commit_service)
            await callback.answer(text)
            await message.answer(text)
        case _:
            _LOGGER.error('Received unknown booking command %s', query)
            await callback.answer('Something went wrong')


async def _offer_sessions(message: Message, speaker_id: int, session_repository: SessionRepository):
    today = _today()
    sessions = [session for session in await session_repository.get_sessions() if session.date > today]
    if not sessions:
        await message.answer('No upcoming sessions')
        return
    keyboard = InlineKeyboardBuilder()
    for session in sessions:
        keyboard.button(text=f'#{session.id} {session.date:%d.%m} {schedule.make_time_string(session)}',
                        callback_data=f'book#{speaker_id}#{session.id}')
    keyboard.adjust(1)
    await message.answer(**schedule.render_sessions(sessions).as_kwargs(), reply_markup=keyboard.as_markup())


async def _book(speaker_id: int, session_id: int, session_repository: SessionRepository,
                commit_service: AssignmentCommitService):
    conference_session = await session_repository.get_session(session_id)
    if conference_session is None:
        return f'Session {session_id} not found'
    if conference_session.date <= _today():
        return PAST_DATE_MESSAGE
    try:
        result = await commit_service.commit(speaker_id, session_id)
    except (SchedulingError, SQLAlchemyError):
        _LOGGER.exception('Failed to book speaker %d into session %d', speaker_id, session_id)
        return 'Could not create assignment, try again later'
    match result:
        case Rejection(reason=reason):
            _LOGGER.info('Booking speaker %d into session %d rejected: %s', speaker_id, session_id, reason)
            return reason
        case assignment_id:
            return f'Assignment created: {assignment_id}'


async def handle_calendar(message: Message, command: CommandObject, availability: AvailabilityService):
    args = (command.args or '').split()
    try:
        speaker_id = int(args[0])
        months = int(args[1]) if len(args) > 1 else DEFAULT_MONTHS
        if not 0 < months <= MAX_MONTHS:
            raise ValueError(months)
    except (IndexError, ValueError):
        _LOGGER.warning('User %s sent invalid calendar command %s', format_user(message.from_user), command.args)
        await message.answer(f'Usage: /calendar <speaker> [months, 1-{MAX_MONTHS}]')
        return
    await _send_calendar(message, speaker_id, months, availability)


async def handle_calendar_query(callback: CallbackQuery, availability: AvailabilityService):
    message = callback.message
    if message is None or isinstance(message, InaccessibleMessage):
        await callback.answer('Message is too old')
        return
    query = callback.data
    assert query is not None
    try:
        speaker_id = int(query.split('#')[1])
    except (IndexError, ValueError):
        _LOGGER.exception('Invalid calendar query %s', query)
        await callback.answer('Something went wrong')
        return
    await callback.answer()
    await _send_calendar(message, speaker_id, DEFAULT_MONTHS, availability)


async def _send_calendar(message: Message, speaker_id: int, months: int, availability: AvailabilityService):
    today = _today()
    start, end = calendar.calendar_bounds(today, months)
    booked = await availability.list_booked_dates(speaker_id, start, end)
    await message.answer(**calendar.render_calendar(start, months, booked, today).as_kwargs())


def get_router():
    router = Router()
    router.message.register(handle_available, Command('available'))
    router.message.register(handle_book, Command('book'))
    router.message.register(handle_calendar, Command('calendar'))
    router.callback_query.register(handle_book_query, F.data.startswith('book#'))
    router.callback_query.register(handle_calendar_query, F.data.startswith('calendar#'))
    _LOGGER.debug('Booking handlers registered')
    return router
