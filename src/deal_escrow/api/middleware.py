"""FastAPI middleware for request tracing, error handling, and CORS.

Middleware stack (applied bottom-up):
    1. RequestIDMiddleware — injects X-Request-ID into every request/response
    2. ErrorHandlerMiddleware — catches domain exceptions -> structured JSON errors
    3. CORSMiddleware — lets the browser UI call the API
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import structlog
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from deal_escrow.domain.exceptions import (
    AuthorizationError,
    DuplicateArbiterError,
    EscrowError,
    ExternalTransferError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    NotFoundError,
    ProjectionError,
)

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)


def _error_response(status_code: int, exc: EscrowError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


# ---------------------------------------------------------------------------
# 1. Request ID Middleware
# ---------------------------------------------------------------------------
class RequestIDMiddleware(BaseHTTPMiddleware):
    """Inject a unique X-Request-ID into every request for log correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


# ---------------------------------------------------------------------------
# 2. Error Handler Middleware
# ---------------------------------------------------------------------------
class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Catch domain exceptions and return structured JSON error responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except AuthorizationError as exc:
            logger.warning("auth.denied", caller=exc.caller, required=exc.required_role)
            return _error_response(403, exc)
        except NotFoundError as exc:
            logger.warning("lookup.not_found", error=exc.message)
            return _error_response(404, exc)
        except InvalidStateTransitionError as exc:
            logger.warning(
                "state_machine.invalid_transition",
                current=exc.current_state,
                attempted=exc.attempted,
            )
            return _error_response(409, exc)
        except DuplicateArbiterError as exc:
            logger.warning("arbiter.duplicate", address=exc.address)
            return _error_response(409, exc)
        except InvalidArgumentError as exc:
            logger.warning("argument.invalid", error=exc.message, field=exc.field)
            return _error_response(422, exc)
        except ExternalTransferError as exc:
            logger.error("transfer.failed", error=exc.message, asset=exc.asset)
            return _error_response(402, exc)
        except ProjectionError as exc:
            logger.error("projection.write_failed", error=exc.message, deals=exc.deal_ids)
            return JSONResponse(
                status_code=500,
                content={
                    "error": exc.code,
                    "message": exc.message,
                    "ledger_committed": True,
                    "deal_ids": exc.deal_ids,
                },
            )
        except EscrowError as exc:
            logger.error("domain.error", error=exc.message, code=exc.code)
            return _error_response(500, exc)
        except Exception as exc:
            logger.exception("unhandled.error", error=str(exc))
            return JSONResponse(
                status_code=500,
                content={
                    "error": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                },
            )


# ---------------------------------------------------------------------------
# Setup function
# ---------------------------------------------------------------------------
def setup_middleware(app: FastAPI) -> None:
    """Register all middleware on the FastAPI application.

    Middleware is applied bottom-up, so the last added runs first.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIDMiddleware)
