import logging
import uuid
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request as StarletteRequest
from starlette.responses import Response as StarletteResponse
from starlette.responses import StreamingResponse
from starlette.routing import Route

from takeflow.config.models import TakeflowConfig
from takeflow.exceptions import FallbackError
from takeflow.fallback.factory import fallback_from_config
from takeflow.fallback.router import FallbackRouter
from takeflow.observability.logging import LogContext
from takeflow.request import Request
from takeflow.response import parse_headers, parse_status
from takeflow.take import Take

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
_REQUEST_ID_HEADER = "x-request-id"


class TakeApp:
    """A Starlette application serving a single take.

    Every request, whatever its path or method, is converted to a
    ``takeflow.Request`` and handed to the take. The resulting head becomes the
    status and headers of the HTTP response and the body is streamed.
    """

    def __init__(self, take: Take, *, config: TakeflowConfig | None = None):
        """Initializes the TakeApp.

        Args:
            take: The take answering every request.
            config: Optional configuration; when given, the take is wrapped in a
                FallbackRouter built from ``config.fallback``.
        """
        if config is not None:
            take = FallbackRouter(take, fallback_from_config(config.fallback))
        self.take = take

    async def _handle_request(self, request: StarletteRequest) -> StarletteResponse:
        request_id = request.headers.get(_REQUEST_ID_HEADER) or uuid.uuid4().hex
        with LogContext(request_id=request_id, method=request.method, path=request.url.path):
            req = await Request.from_starlette(request)
            try:
                response = await self.take.act(req)
                head = await response.head()
                body = await response.body()
            except FallbackError:
                logger.exception("Request could not be rendered")
                return StarletteResponse(status_code=500)
            logger.debug(f"Take answered {head[0]}")
            streaming = StreamingResponse(body, status_code=parse_status(head))
            for name, value in parse_headers(head):
                streaming.headers.append(name, value)
            return streaming

    def add_routes(self, app: Starlette, path: str = "/{path:path}") -> None:
        """Adds the catch-all take route to the Starlette application.

        Args:
            app: The Starlette application instance.
            path: Route path pattern to mount the take on.
        """
        app.routes.append(
            Route(path, self._handle_request, methods=_ALL_METHODS, name="takeflow_take")
        )
        logger.debug(f"Added take route at path: {path}")

    def build(self, path: str = "/{path:path}", **kwargs: Any) -> Starlette:
        """Builds and returns the Starlette application with the take route.

        Returns:
            The configured Starlette application instance.
        """
        app = Starlette(**kwargs)
        self.add_routes(app, path)
        return app
