import logging
import textwrap

from aiogram import Router
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message
from aiogram.utils.keyboard import ReplyKeyboardBuilder

from data.repository import SessionRepository
from utility import format_user, parse_date
from view import schedule

_LOGGER = logging.getLogger(__name__)


def build_general_keyboard():
    builder = (ReplyKeyboardBuilder()
               .button(text='/speakers')
               .button(text='/sessions'))
    return builder.as_markup(resize_keyboard=True)


async def handle_start(message: Message, state: FSMContext):
    _LOGGER.debug('User %s started interacting with the bot', format_user(message.from_user))
    await state.clear()
    await message.answer(textwrap.dedent('''
    This bot books conference speakers into sessions. Commands:
    /speakers [name] [#speciality] - find speakers
    /speaker <speaker> - speaker details and upcoming sessions
    /sessions [DD.MM.YYYY] - list sessions
    /available <speaker> <DD.MM.YYYY> [HH:MM HH:MM] - check whether a speaker is free
    /book <speaker> <session> - book a speaker into a session
    /calendar <speaker> [months] - days the speaker is booked
    /start - show this message
        '''), reply_markup=build_general_keyboard())


async def handle_sessions(message: Message, command: CommandObject, session_repository: SessionRepository):
    date = None
    if command.args:
        try:
            date = parse_date(command.args.strip())
        except ValueError:
            _LOGGER.warning('User %s sent invalid date %s', format_user(message.from_user), command.args)
            await message.answer('Usage: /sessions [DD.MM.YYYY]')
            return
    sessions = await session_repository.get_sessions(date)
    if not sessions:
        days = ', '.join(f'{day:%d.%m.%Y}' for day in await session_repository.get_all_dates())
        await message.answer(f'Nothing found, conference days: {days}' if days else 'Nothing found')
        return
    await message.answer(**schedule.render_sessions(sessions).as_kwargs())


def get_router():
    router = Router()
    router.message.register(handle_start, CommandStart())
    router.message.register(handle_sessions, Command('sessions'))
    _LOGGER.info('General handlers registered')
    return router
