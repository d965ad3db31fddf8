"""HTTP push gateway implementing PushGateway protocol."""

import logging

import httpx

from pushline.classifier import classify
from pushline.exceptions import PushTransportError
from pushline.models.message import Message
from pushline.models.response import Response

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://android.googleapis.com/gcm/send"


class HttpPushGateway:
    """
    Pushes one message per form-encoded POST and classifies the reply.

    Thread-safe as long as the provided ``httpx.Client`` is; a single client with
    a connection pool at least as large as the scheduler's worker count is the
    intended setup.
    """

    def __init__(self, client: httpx.Client, api_key: str, url: str = DEFAULT_GATEWAY_URL):
        self._client = client
        self._api_key = api_key
        self.url = url

    def build_form(self, message: Message) -> dict[str, str]:
        """Form fields for one message, payload entries prefixed with ``data.``."""
        form = {"registration_id": message.target}
        if message.collapse_key is not None:
            form["collapse_key"] = message.collapse_key
        if message.delay_while_idle:
            form["delay_while_idle"] = "1"
        if message.time_to_live is not None:
            form["time_to_live"] = str(message.time_to_live)
        for key, value in message.data.items():
            form[f"data.{key}"] = value
        return form

    def push(self, message: Message) -> Response:
        """
        POST the message to the gateway and classify the reply.

        Raises:
            PushTransportError: On any HTTP-level failure (connect, timeout, decode)
            UnexpectedResponseError: If the reply matches no known shape
        """
        logger.debug("Sending push message: %s", message)
        try:
            http_response = self._client.post(
                self.url,
                data=self.build_form(message),
                headers={"Authorization": f"key={self._api_key}"},
            )
            body = http_response.text
        except httpx.HTTPError as error:
            raise PushTransportError(f"Request to {self.url} failed: {error}") from error

        response = classify(http_response.status_code, http_response.headers, body, message)
        logger.debug("Received gateway response: %s", response)
        return response

    def close(self) -> None:
        self._client.close()
