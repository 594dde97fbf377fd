import datetime

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# pylint: disable=too-few-public-methods,unsubscriptable-object


class Base(DeclarativeBase):
    pass


class Speaker(Base):
    __tablename__ = 'speakers'
    id: Mapped[int] = mapped_column(primary_key=True)  # noqa: A003
    name: Mapped[str] = mapped_column(nullable=False)
    email: Mapped[str | None]
    speciality: Mapped[str | None]


class ConferenceSession(Base):
    __tablename__ = 'sessions'
    id: Mapped[int] = mapped_column(primary_key=True)  # noqa: A003
    title: Mapped[str] = mapped_column(nullable=False)
    date: Mapped[datetime.date] = mapped_column(nullable=False, index=True)
    start_time: Mapped[datetime.time] = mapped_column(nullable=False)
    end_time: Mapped[datetime.time] = mapped_column(nullable=False)
    location: Mapped[str] = mapped_column(nullable=False)


class Assignment(Base):
    __tablename__ = 'assignments'
    id: Mapped[int] = mapped_column(primary_key=True)  # noqa: A003
    speaker_id: Mapped[int] = mapped_column(ForeignKey('speakers.id'), nullable=False, index=True)
    speaker: Mapped['Speaker'] = relationship()
    session_id: Mapped[int] = mapped_column(ForeignKey('sessions.id'), nullable=False)
    session: Mapped['ConferenceSession'] = relationship()

    __table_args__ = (
        UniqueConstraint('speaker_id', 'session_id'),
    )
