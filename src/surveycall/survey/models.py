"""
SQLAlchemy models for survey participants and their recorded answers.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from surveycall.shared.database import Base

IDENTIFIER_MAX_LENGTH = 255
NUMBER_MAX_LENGTH = 50


class Participant(Base):
    """One caller taking the survey, keyed by the platform's call id."""

    __tablename__ = "survey_participants"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    call_id: Mapped[str] = mapped_column(
        String(IDENTIFIER_MAX_LENGTH),
        unique=True,
        nullable=False,
        index=True,
    )
    number: Mapped[str | None] = mapped_column(
        String(NUMBER_MAX_LENGTH),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # Relationships
    responses: Mapped[list["Answer"]] = relationship(
        "Answer",
        back_populates="participant",
        order_by="Answer.id",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def answered_count(self) -> int:
        """Questions already answered; the only progress marker."""
        return len(self.responses)

    def has_answer(self, leg_id: str, recording_id: str) -> bool:
        return any(
            a.leg_id == leg_id and a.recording_id == recording_id for a in self.responses
        )

    def __repr__(self) -> str:
        return f"<Participant(call_id={self.call_id}, answered={self.answered_count})>"


class Answer(Base):
    """Recording reference captured for one question."""

    __tablename__ = "survey_answers"
    __table_args__ = (
        UniqueConstraint(
            "participant_id",
            "leg_id",
            "recording_id",
            name="uq_survey_answers_recording",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )
    participant_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("survey_participants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    leg_id: Mapped[str] = mapped_column(
        String(IDENTIFIER_MAX_LENGTH),
        nullable=False,
    )
    recording_id: Mapped[str] = mapped_column(
        String(IDENTIFIER_MAX_LENGTH),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    participant: Mapped[Participant] = relationship(
        "Participant",
        back_populates="responses",
    )

    def __repr__(self) -> str:
        return f"<Answer(leg_id={self.leg_id}, recording_id={self.recording_id})>"
