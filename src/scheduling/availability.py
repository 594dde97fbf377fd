import datetime
import logging
from collections.abc import Collection

from sqlalchemy.ext.asyncio import AsyncSession

from data.repository import AssignmentRepository
from dto import AssignmentKey, Availability, CommittedAssignment, ProposedAssignment

from .validator import AssignmentValidator

AVAILABLE_MESSAGE = 'Speaker is available.'
DATE_BOOKED_MESSAGE = 'Slot is already booked, try another date'


class AvailabilityService:
    def __init__(self, assignment_repository: AssignmentRepository) -> None:
        self._repository = assignment_repository
        self._validator = AssignmentValidator(self)
        self._logger = logging.getLogger(__name__)

    async def bulk_load_committed(self, keys: Collection[AssignmentKey], session: AsyncSession | None = None,
                                  lock: bool = False):
        """Load committed assignments for all `keys` with a single query, grouped by key."""
        if session is None:
            async with self._repository.get_session() as own_session:
                rows = await self._repository.get_committed(keys, own_session, lock)
        else:
            rows = await self._repository.get_committed(keys, session, lock)
        grouped: dict[AssignmentKey, list[CommittedAssignment]] = {key: [] for key in keys}
        for row in rows:
            grouped.setdefault(row.key, []).append(row)
        for intervals in grouped.values():
            intervals.sort(key=lambda assignment: (assignment.start_time, assignment.end_time))
        return grouped

    async def is_available(self, speaker_id: int, date: datetime.date,
                           start: datetime.time, end: datetime.time):
        candidate = ProposedAssignment(None, speaker_id, None, date, start, end)
        [result] = await self._validator.validate([candidate])
        if result.rejection is not None:
            self._logger.debug('Speaker %d is busy on %s %s-%s', speaker_id, date, start, end)
            return Availability(False, result.rejection.reason)
        return Availability(True, AVAILABLE_MESSAGE)

    async def is_date_available(self, speaker_id: int, date: datetime.date):
        booked = await self.list_booked_dates(speaker_id, date, date)
        if booked:
            return Availability(False, DATE_BOOKED_MESSAGE)
        return Availability(True, AVAILABLE_MESSAGE)

    async def list_booked_dates(self, speaker_id: int, start: datetime.date, end: datetime.date):
        dates = await self._repository.get_booked_dates(speaker_id, start, end)
        return set(dates)
