"""
Read-only admin listing of participants and questions.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from surveycall.admin.rendering import AdminRenderer
from surveycall.shared.database import get_db_session
from surveycall.survey.questions import QuestionBank
from surveycall.survey.repository import ParticipantRepository
from surveycall.survey.router import get_question_bank

router = APIRouter(prefix="/admin", tags=["admin"])

_renderer = AdminRenderer()


@router.get("", response_class=HTMLResponse, summary="List participants")
async def list_participants(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    questions: Annotated[QuestionBank, Depends(get_question_bank)],
) -> HTMLResponse:
    participants = await ParticipantRepository(session).list_all()
    return HTMLResponse(_renderer.render(questions, participants))
