import json
import logging

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from .config import MAX_BODY_BYTES
from .logging_config import set_request_id
from .models import WithdrawalRequest
from .security import ValidationError
from .telemetry import report_error
from .withdrawal import OutcomeKind, WithdrawalOrchestrator

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    OutcomeKind.OK: 200,
    OutcomeKind.BAD_REQUEST: 400,
    OutcomeKind.POLICY_REJECTED: 401,
    OutcomeKind.UNAUTHORIZED: 403,
    OutcomeKind.FORBIDDEN: 403,
    OutcomeKind.CONFLICT: 409,
    OutcomeKind.UPSTREAM_UNAVAILABLE: 500,
    OutcomeKind.INTERNAL: 500,
}


def _text(status_code: int, body: str, request_id: str) -> PlainTextResponse:
    return PlainTextResponse(body, status_code=status_code, headers={"X-Request-ID": request_id})


def _invalid_argument(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    cause = (err.get("ctx") or {}).get("error")
    if isinstance(cause, ValidationError):
        return f"Invalid argument: {json.dumps(cause.value, default=str)} ({cause.message})"
    field = ".".join(str(p) for p in err.get("loc", ()))
    value = None if err.get("type") == "missing" else err.get("input")
    reason = f"{field}: {err['msg']}" if field else err["msg"]
    return f"Invalid argument: {json.dumps(value, default=str)} ({reason})"


async def _read_body(request: Request, limit: int):
    """Read the body, giving up as soon as it exceeds `limit` bytes."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        return None
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


def create_app(orchestrator: WithdrawalOrchestrator, max_body_bytes: int = MAX_BODY_BYTES) -> FastAPI:
    """Build the HTTP app around a configured orchestrator."""
    app = FastAPI(title="station-withdraw", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.orchestrator = orchestrator

    async def withdraw(request: Request):
        request_id = set_request_id(request.headers.get("x-request-id"))

        if request.method != "POST":
            return _text(404, "Not Found", request_id)

        body = await _read_body(request, max_body_bytes)
        if body is None:
            return _text(413, "Request body too large", request_id)

        try:
            payload = json.loads(body)
        except ValueError:
            return _text(400, "Invalid JSON Body", request_id)

        try:
            withdrawal = WithdrawalRequest.model_validate(payload)
        except PydanticValidationError as e:
            return _text(400, _invalid_argument(e), request_id)

        try:
            outcome = await run_in_threadpool(app.state.orchestrator.withdraw, withdrawal)
        except Exception as e:
            logger.exception("Unhandled error while processing withdrawal")
            report_error("Unhandled error while processing withdrawal", e, {"request_id": request_id})
            return _text(500, "Internal Server Error", request_id)

        status_code = STATUS_BY_KIND[outcome.kind]
        if status_code >= 500:
            report_error(outcome.message, outcome.error, {
                "request_id": request_id,
                "outcome": outcome.kind.value,
            })

        if outcome.ok():
            return _text(200, outcome.tx_hash, request_id)
        return _text(status_code, outcome.message, request_id)

    # methods=None matches every method, including TRACE and extension methods
    app.router.add_route("/{path:path}", withdraw, methods=None)
    return app
