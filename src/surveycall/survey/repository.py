"""
Repository for survey participant database operations.
"""

from typing import Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from surveycall.shared.exceptions import DuplicateCreateError, NotFoundError
from surveycall.shared.logging import get_logger
from surveycall.survey.models import Answer, Participant

logger = get_logger(__name__)


class ParticipantStore(Protocol):
    """Protocol for participant persistence used by the flow engine."""

    async def get_by_call_id(self, call_id: str) -> Participant | None:
        """Get participant by platform call ID."""
        ...

    async def create(self, call_id: str, number: str | None) -> Participant:
        """Create a participant with no responses."""
        ...

    async def append_answer(
        self,
        call_id: str,
        leg_id: str,
        recording_id: str,
        limit: int | None = None,
    ) -> Participant:
        """Append a recording reference unless the participant already holds `limit` answers."""
        ...


class ParticipantRepository:
    """Repository for participant database operations.

    Every write commits its own transaction so a failed insert can be rolled
    back without losing earlier work in the same request.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async database session.
        """
        self._session = session

    async def get_by_call_id(self, call_id: str) -> Participant | None:
        """Get participant by platform call ID.

        Args:
            call_id: Call identifier assigned by the telephony platform.

        Returns:
            Participant with responses loaded if found, None otherwise.
        """
        stmt = (
            select(Participant)
            .where(Participant.call_id == call_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, call_id: str, number: str | None) -> Participant:
        """Create a new participant record.

        Args:
            call_id: Call identifier assigned by the telephony platform.
            number: Destination phone number.

        Returns:
            Created Participant instance.

        Raises:
            DuplicateCreateError: If a participant with this call ID exists.
        """
        self._session.add(Participant(call_id=call_id, number=number, responses=[]))
        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            raise DuplicateCreateError(call_id) from exc

        logger.info("Participant created", extra={"call_id": call_id})
        return await self._get_required(call_id)

    async def append_answer(
        self,
        call_id: str,
        leg_id: str,
        recording_id: str,
        limit: int | None = None,
    ) -> Participant:
        """Append a recording reference, ignoring one that is already stored.

        The participant row is locked (SELECT ... FOR UPDATE) and its answers
        are re-read before the insert, so concurrent callbacks for the same
        call id are serialized and `limit` is checked against committed state.

        Args:
            call_id: Call identifier of the participant.
            leg_id: Telephony leg that produced the recording.
            recording_id: Recording identifier.
            limit: Maximum number of answers; nothing is written once reached.

        Returns:
            Participant with refreshed responses.

        Raises:
            NotFoundError: If no participant exists for call_id.
        """
        participant = await self._get_required(call_id, lock=True)

        if participant.has_answer(leg_id, recording_id):
            await self._session.commit()
            logger.info(
                "Duplicate answer skipped",
                extra={"call_id": call_id, "leg_id": leg_id, "recording_id": recording_id},
            )
            return participant

        if limit is not None and participant.answered_count >= limit:
            await self._session.commit()
            logger.warning(
                "Answer limit reached; nothing recorded",
                extra={
                    "call_id": call_id,
                    "leg_id": leg_id,
                    "recording_id": recording_id,
                    "answered": participant.answered_count,
                    "limit": limit,
                },
            )
            return participant

        self._session.add(
            Answer(
                participant_id=participant.id,
                leg_id=leg_id,
                recording_id=recording_id,
            )
        )
        try:
            await self._session.commit()
        except IntegrityError:
            # A concurrent callback stored the same reference first.
            await self._session.rollback()
            logger.info(
                "Duplicate answer skipped (constraint)",
                extra={"call_id": call_id, "leg_id": leg_id, "recording_id": recording_id},
            )

        return await self._get_required(call_id)

    async def list_all(self) -> Sequence[Participant]:
        """List all participants in creation order."""
        stmt = (
            select(Participant)
            .order_by(Participant.id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def _get_required(self, call_id: str, lock: bool = False) -> Participant:
        stmt = (
            select(Participant)
            .where(Participant.call_id == call_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        participant = result.scalar_one_or_none()
        if participant is None:
            raise NotFoundError(
                f"Participant not found: {call_id}",
                {"call_id": call_id},
            )
        return participant
