"""Construction of ready-to-start delivery schedulers."""

from typing import Any, Iterable, Optional

import httpx

from pushline.adapters.http.gateway import HttpPushGateway
from pushline.config import PushlineSettings, get_settings
from pushline.engine.backoff import BackoffPolicy
from pushline.engine.chain import HandlerChain
from pushline.engine.scheduler import DeliveryScheduler
from pushline.handlers.retry import RetryPolicyHandler
from pushline.protocols.gateway import PushGateway
from pushline.protocols.timer import Timer


def create_backoff(settings: PushlineSettings) -> BackoffPolicy:
    return BackoffPolicy(
        base_delay=settings.base_delay,
        max_delay=settings.max_delay,
        idle_timeout=settings.counter_idle_timeout,
    )


def create_scheduler(
    gateway: PushGateway,
    handlers: Iterable[Any] = (),
    settings: Optional[PushlineSettings] = None,
    backoff: Optional[BackoffPolicy] = None,
    timer: Optional[Timer] = None,
) -> DeliveryScheduler:
    """
    Build a scheduler with the retry policy registered ahead of ``handlers``.

    The default chain retries ``ServiceUnavailable`` and ``QuotaExceeded`` with
    global backoff and ``DeviceQuotaExceeded`` with per-target backoff, honouring
    ``Retry-After`` hints.

    Args:
        gateway: Push primitive, thread-safe for ``settings.max_workers`` threads
        handlers: Extra filters and observers, run after the retry policy
        settings: Settings to use; the global settings by default
        backoff: Backoff policy to share; built from settings by default
        timer: Retry timer override
    """
    settings = settings if settings is not None else get_settings()
    backoff = backoff if backoff is not None else create_backoff(settings)
    chain = HandlerChain([RetryPolicyHandler(backoff, max_attempts=settings.max_attempts)])
    for handler in handlers:
        chain.register(handler)
    return DeliveryScheduler(
        gateway, handlers=chain, max_workers=settings.max_workers, timer=timer
    )


def create_http_gateway(settings: PushlineSettings) -> HttpPushGateway:
    if settings.api_key is None:
        raise ValueError("PUSHLINE_API_KEY is required for the HTTP gateway")
    client = httpx.Client(
        timeout=settings.request_timeout,
        limits=httpx.Limits(
            max_connections=settings.max_workers,
            max_keepalive_connections=settings.max_workers,
        ),
    )
    return HttpPushGateway(client, settings.api_key.get_secret_value(), url=settings.gateway_url)


def create_http_scheduler(
    settings: Optional[PushlineSettings] = None, handlers: Iterable[Any] = ()
) -> DeliveryScheduler:
    """Build a scheduler pushing over HTTP with a pooled ``httpx.Client``."""
    settings = settings if settings is not None else get_settings()
    return create_scheduler(create_http_gateway(settings), handlers=handlers, settings=settings)
