"""HTTP adapter for the push gateway protocol."""

from pushline.adapters.http.gateway import DEFAULT_GATEWAY_URL, HttpPushGateway

__all__ = ["DEFAULT_GATEWAY_URL", "HttpPushGateway"]
