import datetime
import logging

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .tables import Assignment, ConferenceSession, Speaker


async def fill_tables(session_factory: async_sessionmaker[AsyncSession]):
    async with session_factory() as session, session.begin():
        speaker_insert = insert(Speaker).returning(Speaker.id, sort_by_parameter_order=True)
        speaker_ids = (await session.execute(speaker_insert, [
            {'name': 'Ada Lovelace', 'email': 'ada@example.com', 'speciality': 'Computing'},
            {'name': 'Grace Hopper', 'email': 'grace@example.com', 'speciality': 'Compilers'},
            {'name': 'Alan Turing', 'email': None, 'speciality': 'Computing'},
            {'name': 'Barbara Liskov', 'email': 'barbara@example.com', 'speciality': 'Programming languages'},
        ])).scalars().all()
        session_insert = insert(ConferenceSession).returning(ConferenceSession.id, sort_by_parameter_order=True)
        session_ids = (await session.execute(session_insert, [
            {'title': 'Opening keynote', 'date': datetime.date(2025, 6, 1),
             'start_time': datetime.time(9), 'end_time': datetime.time(10), 'location': 'A'},
            {'title': 'Compilers today', 'date': datetime.date(2025, 6, 1),
             'start_time': datetime.time(10), 'end_time': datetime.time(11), 'location': 'A'},
            {'title': 'Panel discussion', 'date': datetime.date(2025, 6, 1),
             'start_time': datetime.time(9, 30), 'end_time': datetime.time(10, 30), 'location': 'B'},
            {'title': 'Second day keynote', 'date': datetime.date(2025, 6, 2),
             'start_time': datetime.time(9), 'end_time': datetime.time(10), 'location': 'A'},
            {'title': 'Closing talk', 'date': datetime.date(2025, 6, 3),
             'start_time': datetime.time(14), 'end_time': datetime.time(15), 'location': 'A'},
        ])).scalars().all()
        await session.execute(insert(Assignment), [
            {'speaker_id': speaker_ids[0], 'session_id': session_ids[0]},
            {'speaker_id': speaker_ids[1], 'session_id': session_ids[3]},
        ])
    logging.getLogger(__name__).info('Tables filled with mock data')
