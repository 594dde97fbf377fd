import logging
from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dto import AssignmentKey, CommittedAssignment, ProposedAssignment
from utility import assert_not_nones

from .errors import Rejection, TransientReadFailure, ValidationResult
from .overlap import overlaps

_LOGGER = logging.getLogger(__name__)


class CommittedReader(Protocol):
    async def bulk_load_committed(self, keys: Collection[AssignmentKey], session: AsyncSession | None = None,
                                  lock: bool = False) -> Mapping[AssignmentKey, Sequence[CommittedAssignment]]:
        ...


class AssignmentValidator:
    """Decides which proposed assignments can be committed.

    Every call reads committed state exactly once, for all (speaker, date) pairs
    touched by the batch, and judges each candidate against that snapshot and
    against its siblings in the same batch.
    """

    def __init__(self, reader: CommittedReader) -> None:
        self._reader = reader

    async def validate(self, candidates: Sequence[ProposedAssignment],
                       previous: Mapping[int, CommittedAssignment] | None = None,
                       session: AsyncSession | None = None, lock: bool = False):
        keys = {candidate.key for candidate in candidates if candidate.is_complete}
        if keys:
            try:
                committed = await self._reader.bulk_load_committed(keys, session, lock)
            except SQLAlchemyError as e:
                _LOGGER.exception('Failed to load committed assignments for %d keys', len(keys))
                msg = 'Could not read committed assignments'
                raise TransientReadFailure(msg) from e
        else:
            committed = {}
        superseded = {candidate.id for candidate in candidates if candidate.id is not None}
        if previous:
            superseded.update(previous.keys())
        results = judge(candidates, committed, superseded)
        rejected = sum(not result.ok for result in results)
        if rejected:
            _LOGGER.info('Rejected %d of %d proposed assignments', rejected, len(results))
        return results


def judge(candidates: Sequence[ProposedAssignment],
          committed: Mapping[AssignmentKey, Iterable[CommittedAssignment]],
          superseded: Collection[int] = ()):
    """Pure part of the validation. Results follow the order of `candidates`.

    Committed rows in `superseded` are being moved by their update candidates and are
    left out of the comparisons. A rejected update leaves its row where it was, so the
    batch is judged again with that row back in place until no new rejection appears.
    """
    groups: dict[AssignmentKey, list[int]] = {}
    invalid: dict[int, ValidationResult] = {}
    for index, candidate in enumerate(candidates):
        if not candidate.is_complete:
            _LOGGER.warning('Incomplete proposed assignment %s', candidate)
            invalid[index] = ValidationResult(candidate, Rejection.invalid())
        else:
            groups.setdefault(candidate.key, []).append(index)

    moved = set(superseded)
    while True:
        results: list[ValidationResult | None] = [invalid.get(index) for index in range(len(candidates))]
        for key, indices in groups.items():
            existing = [assignment for assignment in committed.get(key, ()) if assignment.id not in moved]
            for index in indices:
                candidate = candidates[index]
                others: list[ProposedAssignment | CommittedAssignment] = [
                    assignment for assignment in existing if assignment.id != candidate.id]
                others.extend(candidates[other] for other in indices
                              if other != index and not _same_assignment(candidate, candidates[other]))
                rejection = Rejection.conflict() if _conflicts(candidate, others) else None
                results[index] = ValidationResult(candidate, rejection)
        judged = list(assert_not_nones(results))
        kept = {result.candidate.id for result in judged if not result.ok} & moved
        if not kept:
            return judged
        _LOGGER.debug('Rejected updates keep assignments %s in place', sorted(kept))
        moved -= kept


def _conflicts(candidate: ProposedAssignment, others: Iterable[ProposedAssignment | CommittedAssignment]):
    assert candidate.start_time is not None
    assert candidate.end_time is not None
    for other in others:
        if candidate.session_id is not None and candidate.session_id == other.session_id:
            return True
        assert other.start_time is not None
        assert other.end_time is not None
        if overlaps(candidate.start_time, candidate.end_time, other.start_time, other.end_time):
            return True
    return False


def _same_assignment(first: ProposedAssignment, second: ProposedAssignment):
    return first.id is not None and first.id == second.id
