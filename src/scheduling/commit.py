import dataclasses
import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from data.repository import AssignmentRepository, SessionRepository, SpeakerRepository
from dto import AssignmentRequest, ProposedAssignment

from .availability import AvailabilityService
from .errors import Rejection, UnknownAssignment, ValidationResult
from .validator import AssignmentValidator


class AssignmentCommitService:
    """The only write path for assignments.

    Validation reads committed state inside the transaction that performs the write,
    locking the speaker's rows where the database supports it. Two writers racing on
    the same speaker can still both pass validation if neither sees the other's insert;
    the storage layer's isolation is the final guard against that.
    """

    def __init__(self, speaker_repository: SpeakerRepository, session_repository: SessionRepository,
                 assignment_repository: AssignmentRepository, availability: AvailabilityService) -> None:
        self._speakers = speaker_repository
        self._sessions = session_repository
        self._assignments = assignment_repository
        self._validator = AssignmentValidator(availability)
        self._logger = logging.getLogger(__name__)

    async def commit(self, speaker_id: int, session_id: int) -> int | Rejection:
        [result] = await self.apply([AssignmentRequest(None, speaker_id, session_id)])
        if result.rejection is not None:
            return result.rejection
        assert result.candidate.id is not None
        return result.candidate.id

    async def reschedule(self, assignment_id: int, session_id: int) -> int | Rejection:
        async with self._assignments.get_session() as session:
            previous = await self._assignments.get_assignments([assignment_id], session)
        if assignment_id not in previous:
            msg = f'Assignment {assignment_id} does not exist'
            raise UnknownAssignment(msg)
        speaker_id = previous[assignment_id].speaker_id
        [result] = await self.apply([AssignmentRequest(assignment_id, speaker_id, session_id)])
        if result.rejection is not None:
            return result.rejection
        return assignment_id

    async def apply(self, requests: Sequence[AssignmentRequest]):
        """Validate a batch of inserts and updates, then write the accepted ones.

        The returned results follow the order of `requests`; accepted inserts carry
        the generated id. Everything happens in one transaction, so a storage failure
        leaves nothing written.
        """
        async with self._assignments.get_session() as session, session.begin():
            candidates, previous, unknown = await self._resolve(requests, session)
            results = await self._validator.validate(candidates, previous, session, lock=True)
            for index in unknown:
                reason = f'Assignment {results[index].candidate.id} does not exist'
                results[index] = dataclasses.replace(results[index], rejection=Rejection.invalid(reason))
            # Updates are written before inserts, so an insert may take a session an update leaves
            for index in sorted(range(len(results)), key=lambda position: results[position].candidate.id is None):
                results[index] = await self._write(results[index], session)
        accepted = sum(result.ok for result in results)
        self._logger.info('Applied %d of %d assignment changes', accepted, len(results))
        return results

    async def _resolve(self, requests: Sequence[AssignmentRequest], session: AsyncSession):
        session_ids = {request.session_id for request in requests if request.session_id is not None}
        speaker_ids = {request.speaker_id for request in requests if request.speaker_id is not None}
        update_ids = {request.id for request in requests if request.id is not None}
        sessions = await self._sessions.get_sessions_by_ids(session_ids, session) if session_ids else {}
        known_speakers = await self._speakers.get_existing_ids(speaker_ids, session) if speaker_ids else set()
        previous = await self._assignments.get_assignments(update_ids, session) if update_ids else {}

        candidates: list[ProposedAssignment] = []
        unknown: set[int] = set()
        for index, request in enumerate(requests):
            speaker_id = request.speaker_id if request.speaker_id in known_speakers else None
            if request.id is not None and request.id not in previous:
                unknown.add(index)
                speaker_id = None
            conference_session = sessions.get(request.session_id) if request.session_id is not None else None
            if conference_session is None:
                candidates.append(ProposedAssignment(request.id, speaker_id, request.session_id))
            else:
                candidates.append(ProposedAssignment.for_session(request.id, speaker_id, conference_session))
        return candidates, previous, unknown

    async def _write(self, result: ValidationResult, session: AsyncSession):
        if result.rejection is not None:
            self._logger.info('Assignment %s rejected: %s', result.candidate, result.rejection.reason)
            return result
        candidate = result.candidate
        assert candidate.speaker_id is not None
        assert candidate.session_id is not None
        if candidate.id is None:
            new_id = await self._assignments.insert(candidate.speaker_id, candidate.session_id, session)
            return dataclasses.replace(result, candidate=dataclasses.replace(candidate, id=new_id))
        await self._assignments.update(candidate.id, candidate.speaker_id, candidate.session_id, session)
        return result

