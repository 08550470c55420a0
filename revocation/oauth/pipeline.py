"""Sequential request stages that either enrich the context or answer."""

import logging
from collections.abc import Awaitable, Callable, Sequence

from starlette.responses import JSONResponse, Response

from revocation.oauth.errors import MethodNotAllowedError, ServerError
from revocation.oauth.types import RequestContext

logger = logging.getLogger(__name__)

HTTP_METHOD_NOT_ALLOWED = 405

StageResult = RequestContext | Response
Stage = Callable[[RequestContext], Awaitable[StageResult]]


def server_error_response() -> JSONResponse:
    """Generic 500 body that never reveals the underlying failure."""
    error = ServerError("Internal Server Error")
    return JSONResponse(error.to_response_object(), status_code=500)


def allowed_methods(methods: Sequence[str]) -> Stage:
    """Build a stage rejecting any HTTP method outside *methods*."""
    allowed = [m.upper() for m in methods]
    allow_header = ", ".join(allowed)

    async def _gate(ctx: RequestContext) -> StageResult:
        method = ctx.request.method.upper()
        if method in allowed:
            return ctx
        error = MethodNotAllowedError(
            f"The method {method} is not allowed for this endpoint"
        )
        return JSONResponse(
            error.to_response_object(),
            status_code=HTTP_METHOD_NOT_ALLOWED,
            headers={"Allow": allow_header},
        )

    return _gate


async def run_pipeline(stages: Sequence[Stage], ctx: RequestContext) -> Response:
    """Run *stages* in order until one answers; attach collected headers."""
    try:
        for stage in stages:
            result = await stage(ctx)
            if isinstance(result, Response):
                response = result
                break
            ctx = result
        else:
            logger.error("Pipeline finished without producing a response")
            response = server_error_response()
    except Exception:
        logger.exception("Unhandled error in request pipeline")
        response = server_error_response()

    for name, value in ctx.response_headers.items():
        if name not in response.headers:
            response.headers[name] = value
    return response
