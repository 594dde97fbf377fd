import datetime
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from aiogram.filters import CommandObject
from aiogram.types import Chat, InaccessibleMessage
from freezegun import freeze_time
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import data.mock_data
import data.setup
from data.repository import AssignmentRepository, SessionRepository, SpeakerRepository
from data.tables import Assignment
from handlers import booking
from scheduling.availability import AvailabilityService
from scheduling.commit import AssignmentCommitService


@pytest_asyncio.fixture  # type: ignore
async def session_maker():
    engine = create_async_engine('sqlite+aiosqlite:///:memory:')
    session_maker = async_sessionmaker(engine)
    await data.setup.create_tables(engine)
    await data.mock_data.fill_tables(session_maker)
    return session_maker


@pytest.fixture
def session_repository(session_maker: async_sessionmaker[AsyncSession]):
    return SessionRepository(session_maker)


@pytest.fixture
def availability(session_maker: async_sessionmaker[AsyncSession]):
    return AvailabilityService(AssignmentRepository(session_maker))


@pytest.fixture
def commit_service(session_maker: async_sessionmaker[AsyncSession], session_repository: SessionRepository,
                   availability: AvailabilityService):
    return AssignmentCommitService(SpeakerRepository(session_maker), session_repository,
                                   AssignmentRepository(session_maker), availability)


def _command(name: str, args: str | None):
    return CommandObject(prefix='/', command=name, args=args)


def test_router():
    assert booking.get_router() is not None


@pytest.mark.asyncio
@freeze_time('2025-05-01')
@pytest.mark.parametrize(('args', 'expected'), [
    ('1 2', 'Assignment created: 3'),
    ('1 3', 'Speaker is already booked for this time.'),
    ('1 1', 'Speaker is already booked for this time.'),
    ('3 3', 'Assignment created: 3'),
    ('1 42', 'Session 42 not found'),
    ('42 2', 'Speaker and session are required.'),
])
async def test_book(session_repository: SessionRepository, commit_service: AssignmentCommitService,
                    args: str, expected: str):
    message = AsyncMock()

    await booking.handle_book(message, _command('book', args), session_repository, commit_service)

    message.answer.assert_awaited_once_with(expected)


@pytest.mark.asyncio
@freeze_time('2025-06-01')
async def test_book_past_session(session_repository: SessionRepository, commit_service: AssignmentCommitService,
                                 session_maker: async_sessionmaker[AsyncSession]):
    message = AsyncMock()

    await booking.handle_book(message, _command('book', '3 2'), session_repository, commit_service)

    message.answer.assert_awaited_once_with(booking.PAST_DATE_MESSAGE)
    async with session_maker() as session:
        result = await session.scalars(select(Assignment).where(Assignment.speaker_id == 3))
        assert result.first() is None


@pytest.mark.asyncio
@pytest.mark.parametrize('args', [None, '1', 'one two', '1 x'])
async def test_book_usage(session_repository: SessionRepository, commit_service: AssignmentCommitService,
                          args: str | None, caplog: pytest.LogCaptureFixture):
    message = AsyncMock()

    await booking.handle_book(message, _command('book', args), session_repository, commit_service)

    message.answer.assert_awaited_once_with('Usage: /book <speaker> <session>')
    assert 'invalid booking command' in caplog.text


@pytest.mark.asyncio
@freeze_time('2025-05-01')
@pytest.mark.parametrize(('args', 'expected'), [
    ('1 01.06.2025 09:30 10:30', 'Speaker is already booked for this time.'),
    ('1 01.06.2025 10:00 11:00', 'Speaker is available.'),
    ('1 01.06.2025', 'Slot is already booked, try another date'),
    ('1 02.06.2025', 'Speaker is available.'),
    ('2 02.06.2025 08:00 09:00', 'Speaker is available.'),
    ('1 01.05.2025', 'Date must be in the future'),
])
async def test_available(availability: AvailabilityService, args: str, expected: str):
    message = AsyncMock()

    await booking.handle_available(message, _command('available', args), availability)

    message.answer.assert_awaited_once_with(expected)


@pytest.mark.asyncio
@pytest.mark.parametrize('args', [None, '1', 'x 01.06.2025', '1 2025-06-01', '1 01.06.2025 09:30', '1 01.06.2025 9 10'])
async def test_available_usage(availability: AvailabilityService, args: str | None):
    message = AsyncMock()

    await booking.handle_available(message, _command('available', args), availability)

    message.answer.assert_awaited_once()
    assert 'Usage' in message.answer.await_args.args[0]


@pytest.mark.asyncio
@freeze_time('2025-05-20')
async def test_calendar(availability: AvailabilityService):
    message = AsyncMock()

    await booking.handle_calendar(message, _command('calendar', '1 2'), availability)

    message.answer.assert_awaited_once()
    text = message.answer.await_args.kwargs['text']
    assert 'May 2025' in text
    assert 'June 2025' in text
    assert 'July 2025' not in text
    assert ' 1*' in text
    assert '20.' in text


@pytest.mark.asyncio
@freeze_time('2025-05-20')
async def test_calendar_default_months(availability: AvailabilityService):
    message = AsyncMock()

    await booking.handle_calendar(message, _command('calendar', '2'), availability)

    text = message.answer.await_args.kwargs['text']
    assert 'May 2025' in text
    assert 'June 2025' in text
    assert ' 2*' in text


@pytest.mark.asyncio
@pytest.mark.parametrize('args', [None, 'x', '1 0', '1 13'])
async def test_calendar_usage(availability: AvailabilityService, args: str | None):
    message = AsyncMock()

    await booking.handle_calendar(message, _command('calendar', args), availability)

    message.answer.assert_awaited_once()
    assert 'Usage' in message.answer.await_args.args[0]


@pytest.mark.asyncio
@freeze_time('2025-06-01')
async def test_book_query_offers_upcoming_sessions(session_repository: SessionRepository,
                                                   commit_service: AssignmentCommitService):
    callback = AsyncMock(data='book#3')

    await booking.handle_book_query(callback, session_repository, commit_service)

    callback.answer.assert_awaited_once()
    callback.message.answer.assert_awaited_once()
    kwargs = callback.message.answer.await_args.kwargs
    assert 'Second day keynote' in kwargs['text']
    assert 'Opening keynote' not in kwargs['text']
    buttons = [button.callback_data for row in kwargs['reply_markup'].inline_keyboard for button in row]
    assert buttons == ['book#3#4', 'book#3#5']


@pytest.mark.asyncio
@freeze_time('2025-05-01')
async def test_book_query_books(session_repository: SessionRepository, commit_service: AssignmentCommitService):
    callback = AsyncMock(data='book#3#1')

    await booking.handle_book_query(callback, session_repository, commit_service)

    callback.answer.assert_awaited_once_with('Assignment created: 3')
    callback.message.answer.assert_awaited_once_with('Assignment created: 3')


@pytest.mark.asyncio
@pytest.mark.parametrize('query', ['book#x', 'book#1#2#3', 'book#'])
async def test_book_query_wrong(session_repository: SessionRepository, commit_service: AssignmentCommitService,
                                query: str):
    callback = AsyncMock(data=query)

    await booking.handle_book_query(callback, session_repository, commit_service)

    callback.answer.assert_awaited_once_with('Something went wrong')


@pytest.mark.asyncio
async def test_book_query_inaccessible(session_repository: SessionRepository,
                                       commit_service: AssignmentCommitService):
    callback = AsyncMock(data='book#1')
    callback.message = InaccessibleMessage(chat=Chat(id=1, type='private'), message_id=21)

    await booking.handle_book_query(callback, session_repository, commit_service)

    callback.answer.assert_awaited_once()
    assert 'too old' in callback.answer.await_args.args[0]


@pytest.mark.asyncio
@freeze_time(datetime.date(2025, 5, 20))
async def test_calendar_query(availability: AvailabilityService):
    callback = AsyncMock(data='calendar#2')

    await booking.handle_calendar_query(callback, availability)

    callback.answer.assert_awaited_once()
    text = callback.message.answer.await_args.kwargs['text']
    assert ' 2*' in text
