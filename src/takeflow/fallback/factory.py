from __future__ import annotations

from takeflow.config.models import FallbackConfig, PageConfig
from takeflow.fallback.context import FallbackContext
from takeflow.fallback.resolvers import (
    CallableFallback,
    ChainFallback,
    FallbackResolver,
    LoggingFallback,
    StatusFallback,
)
from takeflow.response import Response, TextResponse


def _page_resolver(page: PageConfig) -> FallbackResolver:
    def render(context: FallbackContext) -> Response:
        return TextResponse(
            page.body,
            status=page.status or context.status_code,
            content_type=page.content_type,
        )

    return CallableFallback(render)


def fallback_from_config(config: FallbackConfig) -> FallbackResolver:
    """Build the resolver chain described by ``config``.

    Order: optional failure logging, one resolver per configured status,
    then the default page if any. With no pages every failure is declined.
    """
    resolvers: list[FallbackResolver] = []
    if config.log_failures:
        resolvers.append(LoggingFallback())
    for code, page in sorted(config.pages.items()):
        resolvers.append(StatusFallback(code, _page_resolver(page)))
    if config.default_page is not None:
        resolvers.append(_page_resolver(config.default_page))
    return ChainFallback(*resolvers)
