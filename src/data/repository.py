import datetime
import logging
from collections.abc import Collection

import automapper  # type: ignore
from sqlalchemy import select, tuple_, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dto import AssignmentKey, CommittedAssignment, SessionDto, SpeakerDto

from .tables import Assignment, ConferenceSession, Speaker


class SpeakerRepository:
    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory
        self._mapper = automapper.mapper.to(SpeakerDto)
        self._logger = logging.getLogger(__name__)

    async def search(self, name: str = '', speciality: str = ''):
        statement = select(Speaker).order_by(Speaker.name, Speaker.id)
        if name:
            statement = statement.where(Speaker.name.icontains(name, autoescape=True))
        if speciality:
            statement = statement.where(Speaker.speciality.icontains(speciality, autoescape=True))
        async with self._factory() as session:
            result = await session.scalars(statement)
            speakers = [self._mapper.map(speaker) for speaker in result]
        self._logger.debug('Found %d speakers for name %r and speciality %r', len(speakers), name, speciality)
        return speakers

    async def get_speaker(self, speaker_id: int):
        async with self._factory() as session:
            speaker = await session.get(Speaker, speaker_id)
            return self._mapper.map(speaker) if speaker is not None else None

    async def get_existing_ids(self, speaker_ids: Collection[int], session: AsyncSession):
        statement = select(Speaker.id).where(Speaker.id.in_(speaker_ids))
        result = await session.scalars(statement)
        return set(result.all())


class SessionRepository:
    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory
        self._mapper = automapper.mapper.to(SessionDto)

    async def get_sessions(self, date: datetime.date | None = None):
        statement = select(ConferenceSession).order_by(ConferenceSession.date, ConferenceSession.start_time,
                                                       ConferenceSession.location)
        if date is not None:
            statement = statement.where(ConferenceSession.date == date)
        async with self._factory() as session:
            result = await session.scalars(statement)
            return [self._mapper.map(conference_session) for conference_session in result]

    async def get_session(self, session_id: int, session: AsyncSession | None = None):
        if session is None:
            async with self._factory() as own_session:
                return await self.get_session(session_id, own_session)
        conference_session = await session.get(ConferenceSession, session_id)
        return self._mapper.map(conference_session) if conference_session is not None else None

    async def get_sessions_by_ids(self, session_ids: Collection[int], session: AsyncSession):
        statement = select(ConferenceSession).where(ConferenceSession.id.in_(session_ids))
        result = await session.scalars(statement)
        return {conference_session.id: self._mapper.map(conference_session) for conference_session in result}

    async def get_all_dates(self):
        statement = select(ConferenceSession.date).distinct().order_by(ConferenceSession.date)
        async with self._factory() as session:
            result = await session.scalars(statement)
            return result.all()


class AssignmentRepository:
    def __init__(self, factory: async_sessionmaker[AsyncSession]) -> None:
        self._factory = factory
        self._session_mapper = automapper.mapper.to(SessionDto)
        self._logger = logging.getLogger(__name__)

    def get_session(self):
        return self._factory()

    async def get_committed(self, keys: Collection[AssignmentKey], session: AsyncSession, lock: bool = False):
        statement = (_select_committed()
                     .where(tuple_(Assignment.speaker_id, ConferenceSession.date).in_(list(keys)))
                     .order_by(Assignment.speaker_id, ConferenceSession.date, ConferenceSession.start_time))
        if lock:
            statement = statement.with_for_update(of=Assignment)
        result = await session.execute(statement)
        return [CommittedAssignment(*row) for row in result.tuples()]

    async def get_assignments(self, assignment_ids: Collection[int], session: AsyncSession):
        statement = _select_committed().where(Assignment.id.in_(assignment_ids))
        result = await session.execute(statement)
        return {row.id: CommittedAssignment(*row) for row in result.tuples()}

    async def get_booked_dates(self, speaker_id: int, start: datetime.date, end: datetime.date):
        statement = (select(ConferenceSession.date).distinct()
                     .join(Assignment, Assignment.session_id == ConferenceSession.id)
                     .where((Assignment.speaker_id == speaker_id) & ConferenceSession.date.between(start, end))
                     .order_by(ConferenceSession.date))
        async with self._factory() as session:
            result = await session.scalars(statement)
            return result.all()

    async def get_speaker_sessions(self, speaker_id: int, since: datetime.date | None = None):
        statement = (select(ConferenceSession)
                     .join(Assignment, Assignment.session_id == ConferenceSession.id)
                     .where(Assignment.speaker_id == speaker_id)
                     .order_by(ConferenceSession.date, ConferenceSession.start_time))
        if since is not None:
            statement = statement.where(ConferenceSession.date >= since)
        async with self._factory() as session:
            result = await session.scalars(statement)
            return [self._session_mapper.map(conference_session) for conference_session in result]

    async def insert(self, speaker_id: int, session_id: int, session: AsyncSession):
        entity = Assignment(speaker_id=speaker_id, session_id=session_id)
        session.add(entity)
        await session.flush()
        self._logger.info('Created assignment %d for speaker %d, session %d', entity.id, speaker_id, session_id)
        return entity.id

    async def update(self, assignment_id: int, speaker_id: int, session_id: int, session: AsyncSession):
        statement = (update(Assignment).where(Assignment.id == assignment_id)
                     .values(speaker_id=speaker_id, session_id=session_id))
        updated = await session.execute(statement)
        self._logger.info('Moved assignment %d to speaker %d, session %d', assignment_id, speaker_id, session_id)
        return updated.rowcount > 0


def _select_committed():
    return (select(Assignment.id, Assignment.speaker_id, Assignment.session_id, ConferenceSession.date,
                   ConferenceSession.start_time, ConferenceSession.end_time)
            .join(Assignment.session))
