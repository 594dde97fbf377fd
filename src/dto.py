import datetime
from dataclasses import dataclass

type AssignmentKey = tuple[int, datetime.date]


@dataclass(frozen=True)
class SpeakerDto:
    id: int | None  # noqa: A003
    name: str
    email: str | None
    speciality: str | None


@dataclass(frozen=True)
class SessionDto:
    id: int | None  # noqa: A003
    title: str
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    location: str


@dataclass(frozen=True)
class CommittedAssignment:
    id: int  # noqa: A003
    speaker_id: int
    session_id: int
    date: datetime.date
    start_time: datetime.time
    end_time: datetime.time

    @property
    def key(self) -> AssignmentKey:
        return self.speaker_id, self.date


@dataclass(frozen=True)
class ProposedAssignment:
    """Candidate booking, not yet persisted. `id` is set when it replaces a committed row."""
    id: int | None  # noqa: A003
    speaker_id: int | None
    session_id: int | None
    date: datetime.date | None = None
    start_time: datetime.time | None = None
    end_time: datetime.time | None = None

    @classmethod
    def for_session(cls, assignment_id: int | None, speaker_id: int | None, session: SessionDto):
        return cls(assignment_id, speaker_id, session.id, session.date, session.start_time, session.end_time)

    @property
    def is_complete(self):
        """Speaker is set and the session interval is resolved."""
        return (self.speaker_id is not None and self.date is not None
                and self.start_time is not None and self.end_time is not None)

    @property
    def key(self) -> AssignmentKey:
        assert self.speaker_id is not None
        assert self.date is not None
        return self.speaker_id, self.date


@dataclass(frozen=True)
class AssignmentRequest:
    id: int | None  # noqa: A003
    speaker_id: int | None
    session_id: int | None


@dataclass(frozen=True)
class Availability:
    available: bool
    message: str
