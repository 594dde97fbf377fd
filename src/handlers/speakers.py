import datetime
import logging

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, InaccessibleMessage, Message
from aiogram.utils.keyboard import InlineKeyboardBuilder

from data.repository import AssignmentRepository, SpeakerRepository
from dto import SpeakerDto
from utility import format_user
from view import schedule

_LOGGER = logging.getLogger(__name__)


def parse_search_query(query: str | None):
    """Split `/speakers` arguments into a name and a speciality; words starting with # are the speciality."""
    name_words: list[str] = []
    speciality_words: list[str] = []
    for word in (query or '').split():
        if word.startswith('#'):
            speciality_words.append(word[1:])
        else:
            name_words.append(word)
    return ' '.join(name_words), ' '.join(speciality_words)


async def handle_search(message: Message, command: CommandObject, speaker_repository: SpeakerRepository):
    name, speciality = parse_search_query(command.args)
    _LOGGER.debug('User %s searches speakers by name %r, speciality %r',
                  format_user(message.from_user), name, speciality)
    speakers = await speaker_repository.search(name, speciality)
    if not speakers:
        await message.answer('No speakers found')
        return
    keyboard = InlineKeyboardBuilder()
    for speaker in speakers:
        keyboard.button(text=speaker.name, callback_data=f'speaker#{speaker.id}')
    keyboard.adjust(2)
    await message.answer(**schedule.render_speakers(speakers).as_kwargs(), reply_markup=keyboard.as_markup())


async def handle_speaker(message: Message, command: CommandObject, speaker_repository: SpeakerRepository,
                         assignment_repository: AssignmentRepository):
    try:
        speaker_id = int((command.args or '').strip())
    except ValueError:
        _LOGGER.warning('User %s sent invalid speaker id %s', format_user(message.from_user), command.args)
        await message.answer('Usage: /speaker <speaker>')
        return
    await _send_speaker(message, speaker_id, speaker_repository, assignment_repository)


async def handle_speaker_query(callback: CallbackQuery, speaker_repository: SpeakerRepository,
                               assignment_repository: AssignmentRepository):
    message = callback.message
    if message is None or isinstance(message, InaccessibleMessage):
        await callback.answer('Message is too old')
        return
    query = callback.data
    assert query is not None
    try:
        speaker_id = int(query.split('#')[1])
    except (IndexError, ValueError):
        _LOGGER.exception('Invalid speaker query %s', query)
        await callback.answer('Something went wrong')
        return
    await callback.answer()
    await _send_speaker(message, speaker_id, speaker_repository, assignment_repository)


async def _send_speaker(message: Message, speaker_id: int, speaker_repository: SpeakerRepository,
                        assignment_repository: AssignmentRepository):
    speaker = await speaker_repository.get_speaker(speaker_id)
    if speaker is None:
        await message.answer(f'Speaker {speaker_id} not found')
        return
    today = datetime.datetime.now(datetime.UTC).date()
    sessions = await assignment_repository.get_speaker_sessions(speaker_id, since=today)
    await message.answer(**schedule.render_speaker(speaker, sessions).as_kwargs(),
                         reply_markup=_build_speaker_keyboard(speaker))


def _build_speaker_keyboard(speaker: SpeakerDto):
    return (InlineKeyboardBuilder()
            .button(text='Book session', callback_data=f'book#{speaker.id}')
            .button(text='Calendar', callback_data=f'calendar#{speaker.id}')
            .as_markup())


def get_router():
    router = Router()
    router.message.register(handle_search, Command('speakers'))
    router.message.register(handle_speaker, Command('speaker'))
    router.callback_query.register(handle_speaker_query, F.data.startswith('speaker#'))
    _LOGGER.debug('Speaker handlers registered')
    return router
