"""
Call-flow state machine.

Progress is never stored: a caller's position in the survey is the number of
answers already recorded for their call id.

    NEW          no record yet (or first callback re-delivered) -> welcome + question 0
    IN_PROGRESS  0 <= answered < total                          -> question[answered]
    COMPLETE     answered == total                              -> closing message
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from surveycall.shared.exceptions import (
    DuplicateCreateError,
    MalformedPayloadError,
    NotFoundError,
)
from surveycall.shared.logging import get_logger
from surveycall.survey.models import Participant
from surveycall.survey.questions import QuestionBank
from surveycall.survey.repository import ParticipantStore
from surveycall.survey.schemas import RecordingReference

logger = get_logger(__name__)


class SurveyState(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class FlowDecision:
    """Outcome of one callback, ready to be rendered into instructions."""

    call_id: str
    state: SurveyState
    answered: int
    question_count: int

    @property
    def question_index(self) -> int | None:
        """Index of the question to ask next, None once the survey is complete."""
        if self.state is SurveyState.COMPLETE:
            return None
        return self.answered

    @property
    def welcome(self) -> bool:
        return self.state is SurveyState.NEW


class FlowEngine:
    """Advances a caller through the question bank one callback at a time."""

    def __init__(self, questions: QuestionBank, store: ParticipantStore) -> None:
        """Initialize the engine.

        Args:
            questions: Question bank loaded at startup.
            store: Participant persistence.
        """
        self._questions = questions
        self._store = store

    async def advance(
        self,
        call_id: str,
        destination: str | None = None,
        reference: RecordingReference | None = None,
    ) -> FlowDecision:
        """Apply one callback to the caller's progress.

        Args:
            call_id: Platform call identifier.
            destination: Destination number, used when the participant is created.
            reference: Recording of the previously asked question, if any.

        Returns:
            Decision describing what to say next.

        Raises:
            MalformedPayloadError: If an answer was expected but no reference was sent.
        """
        participant = await self._store.get_by_call_id(call_id)

        if participant is None:
            participant, created = await self._create(call_id, destination)
            if created:
                if reference is not None:
                    logger.warning(
                        "Recording reference on first callback ignored",
                        extra={"call_id": call_id, "leg_id": reference.leg_id},
                    )
                return self._decide(call_id, answered=0, greeting=True)

        answered = participant.answered_count
        total = self._questions.question_count()

        if answered >= total:
            if reference is not None:
                logger.warning(
                    "Callback after survey completion; nothing recorded",
                    extra={"call_id": call_id, "leg_id": reference.leg_id},
                )
            return self._decide(call_id, answered=answered)

        if reference is None:
            if answered == 0:
                logger.info(
                    "First callback re-delivered; repeating welcome",
                    extra={"call_id": call_id},
                )
                return self._decide(call_id, answered=0, greeting=True)
            raise MalformedPayloadError(
                "Callback is missing the recording reference",
                {"call_id": call_id, "answered": answered},
            )

        try:
            participant = await self._store.append_answer(
                call_id,
                reference.leg_id,
                reference.recording_id,
                limit=total,
            )
            answered = participant.answered_count
        except NotFoundError:
            logger.error(
                "Participant vanished before answer could be stored",
                extra={"call_id": call_id, "leg_id": reference.leg_id},
            )

        return self._decide(call_id, answered=answered)

    async def _create(
        self,
        call_id: str,
        destination: str | None,
    ) -> tuple[Participant, bool]:
        try:
            return await self._store.create(call_id, destination), True
        except DuplicateCreateError:
            logger.info(
                "Concurrent create detected; continuing with existing participant",
                extra={"call_id": call_id},
            )

        participant = await self._store.get_by_call_id(call_id)
        if participant is None:
            raise NotFoundError(
                f"Participant not found after duplicate create: {call_id}",
                {"call_id": call_id},
            )
        return participant, False

    def _decide(self, call_id: str, answered: int, greeting: bool = False) -> FlowDecision:
        total = self._questions.question_count()
        if answered >= total:
            state = SurveyState.COMPLETE
        elif greeting:
            state = SurveyState.NEW
        else:
            state = SurveyState.IN_PROGRESS

        decision = FlowDecision(
            call_id=call_id,
            state=state,
            answered=min(answered, total),
            question_count=total,
        )
        logger.info(
            "Call step decided",
            extra={
                "call_id": call_id,
                "state": state.value,
                "answered": decision.answered,
                "question_count": total,
            },
        )
        return decision
