"""HTTP readiness stage.

Every configured URL is fetched in order with a plain GET. A response with
any status code counts as "up": the stage only cares that the endpoint
answers and the body can be read. The first URL that cannot be reached
fails the whole pass; the next retry starts again from the first URL.
"""

from __future__ import annotations

from typing import Callable, Optional

import httpx
import structlog

from readiness.errors import ResponseError, TransportError
from readiness.settings import HTTPCheckSettings

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[HTTPCheckSettings], httpx.Client]


def default_client_factory(cfg: HTTPCheckSettings) -> httpx.Client:
    return httpx.Client(
        verify=cfg.verify_tls,
        timeout=httpx.Timeout(cfg.timeout),
        follow_redirects=True,
    )


def _fetch(client: httpx.Client, url: str) -> None:
    try:
        with client.stream("GET", url) as response:
            try:
                response.read()
            except httpx.HTTPError as exc:
                raise ResponseError(f"reading response from {url} failed: {exc}") from exc
            logger.info(
                "http_readiness_response",
                url=url,
                status_code=response.status_code,
                body=response.text,
            )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise TransportError(f"GET {url} failed: {exc}") from exc


def check_http(
    cfg: HTTPCheckSettings,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> None:
    """Fetch every URL in ``cfg``; raise on the first one that fails."""
    urls = cfg.url_list
    if not urls:
        logger.info("http_readiness_check_skipped")
        return

    logger.info("http_readiness_check_started", urls=urls)
    if not cfg.verify_tls:
        logger.warning("http_tls_verification_disabled", urls=urls)

    factory = client_factory or default_client_factory
    with factory(cfg) as client:
        for url in urls:
            _fetch(client, url)
    logger.info("http_readiness_check_passed", count=len(urls))
