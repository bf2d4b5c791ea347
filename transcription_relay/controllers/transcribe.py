"""Transcription relay endpoint.

A request moves through three stages in order:

1. Gate: answer CORS preflight, reject anything but POST, check the
   credential and the caller's authorization.
2. Decode: stream the multipart body into fields plus one audio file.
3. Relay: forward the audio to the transcription API and map its answer.
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response

from transcription_relay.config.settings import settings
from transcription_relay.controllers.dependencies import (
    RequestGateDep,
    TranscriptionRelayDep,
)
from transcription_relay.errors import (
    MethodNotAllowedError,
    MissingAudioError,
    RelayError,
    UnclassifiedError,
    UploadTooLargeError,
)
from transcription_relay.services.request_gate import GateDecision
from transcription_relay.services.upload_decoder import decode_upload
from transcription_relay.views import ErrorResponse, TranscriptionResponse

router = APIRouter(tags=["transcription"])

logger = logging.getLogger(__name__)

# Every method is routed here so the gate, not the router, answers 405.
HANDLED_METHODS = ["DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"]

_ERROR_RESPONSES = {
    code: {"model": ErrorResponse}
    for code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_403_FORBIDDEN,
        status.HTTP_405_METHOD_NOT_ALLOWED,
        status.HTTP_408_REQUEST_TIMEOUT,
        UploadTooLargeError.status_code,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
}


@router.api_route(
    settings.relay.path,
    methods=HANDLED_METHODS,
    response_model=TranscriptionResponse,
    responses=_ERROR_RESPONSES,
)
async def transcribe_audio(
    request: Request,
    gate: RequestGateDep,
    relay: TranscriptionRelayDep,
) -> Response:
    """Relay an uploaded audio file to the transcription API and return its text."""

    decision = gate.evaluate(request.method)
    if decision is GateDecision.PREFLIGHT:
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=gate.preflight_headers())
    if decision is GateDecision.REJECT:
        raise MethodNotAllowedError()

    try:
        credential = relay.require_credential()
        await gate.authorize(request.headers.get(settings.relay.caller_identity_header))

        upload = await decode_upload(
            request.headers.get("content-type"),
            request.stream(),
            max_bytes=settings.relay.max_upload_bytes,
        )
        if not upload.has_audio:
            logger.info("Upload rejected: no audio file part")
            raise MissingAudioError()

        result = await relay.transcribe(upload, credential)
    except RelayError:
        raise
    except Exception as exc:
        logger.exception("Transcription error", exc_info=exc)
        raise UnclassifiedError() from exc

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=TranscriptionResponse(text=result.text).model_dump(),
        headers=gate.origin_headers(),
    )
