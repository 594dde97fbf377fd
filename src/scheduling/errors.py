from dataclasses import dataclass
from enum import Enum, auto

from dto import ProposedAssignment

CONFLICT_MESSAGE = 'Speaker is already booked for this time.'
INVALID_CANDIDATE_MESSAGE = 'Speaker and session are required.'


class RejectionKind(Enum):
    INVALID_CANDIDATE = auto()
    SCHEDULING_CONFLICT = auto()


@dataclass(frozen=True)
class Rejection:
    kind: RejectionKind
    reason: str

    @classmethod
    def conflict(cls):
        return cls(RejectionKind.SCHEDULING_CONFLICT, CONFLICT_MESSAGE)

    @classmethod
    def invalid(cls, reason: str = INVALID_CANDIDATE_MESSAGE):
        return cls(RejectionKind.INVALID_CANDIDATE, reason)


@dataclass(frozen=True)
class ValidationResult:
    candidate: ProposedAssignment
    rejection: Rejection | None = None

    @property
    def ok(self):
        return self.rejection is None


class SchedulingError(Exception):
    pass


class InvalidInterval(SchedulingError, ValueError):
    pass


class TransientReadFailure(SchedulingError):
    """Committed assignments could not be read; nothing in the batch was admitted."""


class UnknownAssignment(SchedulingError, LookupError):
    pass
