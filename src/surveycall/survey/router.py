"""
FastAPI router for the survey call-flow webhook.

The telephony platform fetches /callStep when the call starts and again each
time a record step finishes; every reply is the next call-flow document.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from surveycall.config import Settings
from surveycall.shared.database import get_db_session
from surveycall.shared.exceptions import MalformedPayloadError
from surveycall.shared.logging import get_logger
from surveycall.survey.flow import FlowEngine
from surveycall.survey.instructions import render_decision
from surveycall.survey.models import IDENTIFIER_MAX_LENGTH, NUMBER_MAX_LENGTH
from surveycall.survey.questions import QuestionBank
from surveycall.survey.repository import ParticipantRepository
from surveycall.survey.schemas import RecordingReference

logger = get_logger(__name__)

router = APIRouter(tags=["call-flow"])

CALL_STEP_PATH = "/callStep"

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
_REFERENCE_KEYS = ("legId", "id")


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_question_bank(request: Request) -> QuestionBank:
    return request.app.state.question_bank


def get_flow_engine(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    questions: Annotated[QuestionBank, Depends(get_question_bank)],
) -> FlowEngine:
    """Dependency for the flow engine bound to this request's session."""
    return FlowEngine(questions=questions, store=ParticipantRepository(session))


def _abs_base(request: Request, public_base_url: str) -> str:
    """
    Public base URL reachable by the telephony platform.

    Priority:
      1) PUBLIC_BASE_URL setting
      2) X-Forwarded-Proto / X-Forwarded-Host (behind tunnel/proxy)
      3) request.base_url
    """
    if public_base_url:
        return public_base_url

    xf_proto = (request.headers.get("x-forwarded-proto") or "").strip()
    xf_host = (request.headers.get("x-forwarded-host") or "").strip()
    if xf_host:
        proto = xf_proto or "https"
        return f"{proto}://{xf_host}"

    return str(request.base_url).rstrip("/")


async def _read_callback(request: Request) -> tuple[dict[str, str], dict[str, Any] | None]:
    """Collect query/form parameters and the raw recording reference, if any."""
    params = dict(request.query_params)
    raw: dict[str, Any] | None = None

    content_type = request.headers.get("content-type", "")
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        fields = {k: v for k, v in form.items() if isinstance(v, str)}
        for key in ("callID", "destination"):
            if key in fields:
                params.setdefault(key, fields[key])
        raw = fields
    else:
        body = await request.body()
        if body.strip():
            try:
                raw = json.loads(body)
            except ValueError as exc:
                raise MalformedPayloadError("Callback body is not valid JSON") from exc
            if not isinstance(raw, dict):
                raise MalformedPayloadError("Callback body must be a JSON object")

    if raw is None or not any(key in raw for key in _REFERENCE_KEYS):
        return params, None
    return params, raw


def _parse_reference(raw: dict[str, Any] | None) -> RecordingReference | None:
    if raw is None:
        return None
    try:
        return RecordingReference.model_validate(raw)
    except ValidationError as exc:
        fields = sorted({str(error["loc"][0]) for error in exc.errors()})
        raise MalformedPayloadError(
            "Recording reference requires non-empty 'legId' and 'id'",
            {"fields": fields},
        ) from exc


def _check_length(name: str, value: str | None, limit: int) -> None:
    if value is not None and len(value) > limit:
        raise MalformedPayloadError(
            f"Parameter '{name}' exceeds {limit} characters",
            {"field": name, "max_length": limit},
        )


@router.api_route(
    CALL_STEP_PATH,
    methods=["GET", "POST"],
    name="call_step",
    summary="Advance the caller's survey",
)
async def call_step(
    request: Request,
    engine: Annotated[FlowEngine, Depends(get_flow_engine)],
    questions: Annotated[QuestionBank, Depends(get_question_bank)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
) -> dict[str, Any]:
    """Record the previous answer (if any) and return the next call-flow steps."""
    params, raw_reference = await _read_callback(request)

    call_id = (params.get("callID") or "").strip()
    if not call_id:
        raise MalformedPayloadError("Query parameter 'callID' is required")
    destination = params.get("destination")
    _check_length("callID", call_id, IDENTIFIER_MAX_LENGTH)
    _check_length("destination", destination, NUMBER_MAX_LENGTH)

    reference = _parse_reference(raw_reference)
    decision = await engine.advance(
        call_id=call_id,
        destination=destination,
        reference=reference,
    )

    callback_url = f"{_abs_base(request, settings.public_base_url)}{CALL_STEP_PATH}"
    flow = render_decision(decision, questions, callback_url)
    return flow.to_wire()
