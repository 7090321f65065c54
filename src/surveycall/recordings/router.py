"""
FastAPI router relaying recorded answers to the browser.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from surveycall.recordings.client import RecordingLocator, RecordingSource
from surveycall.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["recordings"])


def get_recording_source(request: Request) -> RecordingSource:
    return request.app.state.recording_client


@router.get(
    "/play/{call_id}/{leg_id}/{recording_id}",
    response_class=StreamingResponse,
    summary="Stream a recorded answer",
)
async def play_recording(
    call_id: str,
    leg_id: str,
    recording_id: str,
    source: Annotated[RecordingSource, Depends(get_recording_source)],
) -> StreamingResponse:
    locator = RecordingLocator(call_id=call_id, leg_id=leg_id, recording_id=recording_id)
    stream = await source.open(locator)

    try:
        # Bytes are relayed undecoded, so length and encoding travel with them.
        headers = {}
        if stream.content_length is not None:
            headers["Content-Length"] = stream.content_length
        if stream.content_encoding is not None:
            headers["Content-Encoding"] = stream.content_encoding

        logger.info(
            "Relaying recording",
            extra={"call_id": call_id, "leg_id": leg_id, "recording_id": recording_id},
        )
        return StreamingResponse(
            stream.chunks(),
            media_type=stream.content_type,
            headers=headers,
            background=BackgroundTask(stream.aclose),
        )
    except Exception:
        await stream.aclose()
        raise
