import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

# 헬스체크는 로그에서 제외한다.
IGNORED_LOG_PATHS: set[str] = {"/health"}


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """요청마다 request_id/span_id 를 부여하고 한 줄 액세스 로그를 남긴다.

    - X-Request-Id 가 없으면 새로 생성하고, X-Span-Id 가 없으면 "0" 을 쓴다.
    - request.state 와 응답 헤더에 같은 값을 넣어 리워드 처리 로그와 연결할 수 있게 한다.
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        span_id = request.headers.get(SPAN_ID_HEADER) or "0"
        request.state.request_id = request_id
        request.state.span_id = span_id

        should_log = request.url.path not in IGNORED_LOG_PATHS
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                self._logger.exception(
                    "request failed",
                    extra=self._extra(request, request_id, span_id, start),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        response.headers.setdefault(SPAN_ID_HEADER, span_id)

        if should_log:
            self._logger.info(
                "completed request",
                extra=self._extra(
                    request, request_id, span_id, start, status=response.status_code
                ),
            )
        return response

    @staticmethod
    def _extra(
        request: Request,
        request_id: str,
        span_id: str,
        start: float,
        status: int | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "span_id": span_id,
            "method": request.method,
            "path": request.url.path,
            "duration": f"{(time.monotonic() - start) * 1000:.3f}ms",
        }
        if status is not None:
            extra["status"] = status
        return extra
