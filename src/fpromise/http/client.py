"""HTTP client producing Deferred values.

Wraps an ``httpx.AsyncClient`` built from an explicit ``HttpConfig``.
Every request returns a Deferred that fulfils with the unwrapped
response data, or rejects with ResponseError / HttpStatusError. Failed
responses are classified into a RecoveryAction and handed to the
injected ``on_recovery`` callback.

Usage::

    client = HttpClient(settings.http, on_recovery=router.recover)
    users = await client.get("/users", options=RequestOptions(debug=True))
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable

import httpx
from pydantic import BaseModel

from fpromise.core.config import HttpConfig
from fpromise.core.enums import RecoveryKind
from fpromise.core.errors import HttpStatusError, ResponseError
from fpromise.core.interfaces import IScheduler
from fpromise.deferred import Deferred, from_future

from .status import RecoveryAction, ResponseEnvelope, get_message, recovery_for

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json;charset=utf-8"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=utf-8"
TIMEOUT_STATUS = 504

RecoveryHandler = Callable[[RecoveryAction], None]


class RequestOptions(BaseModel):
    """Per-request flags.

    - external: body is not a standard envelope; return it as decoded
    - return_response: return the raw ``httpx.Response`` on success
    - handle_error: caller handles failures; no recovery dispatch
    - ignore_msg: skip recovery dispatch for envelope failures
    - debug: log request and response at DEBUG
    """

    external: bool = False
    return_response: bool = False
    handle_error: bool = False
    ignore_msg: bool = False
    debug: bool = False


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpClient:
    """Deferred-returning HTTP client.

    Args:
        config: Base URL, timeout, default headers.
        on_recovery: Called with the RecoveryAction for failed responses.
        scheduler: Scheduler for the returned Deferreds (default: running loop).
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: HttpConfig,
        *,
        on_recovery: RecoveryHandler | None = None,
        scheduler: IScheduler | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._on_recovery = on_recovery
        self._scheduler = scheduler
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            headers=config.headers,
            follow_redirects=config.follow_redirects,
            transport=transport,
        )

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        url: str,
        *,
        options: RequestOptions | None = None,
        **kwargs: Any,
    ) -> Deferred[Any]:
        """Send a request. Must be called with a running event loop."""
        opts = options or RequestOptions()
        if opts.debug:
            logger.debug("%s %s start: %r", method, url, kwargs)

        sent = from_future(
            self._client.request(method, url, **kwargs), scheduler=self._scheduler
        )
        return sent.then(
            partial(self._handle_response, opts),
            partial(self._handle_error, opts),
        )

    def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        options: RequestOptions | None = None,
        **kwargs: Any,
    ) -> Deferred[Any]:
        return self.request("GET", url, params=params, options=options, **kwargs)

    def post_json(
        self,
        url: str,
        data: Any = None,
        *,
        options: RequestOptions | None = None,
        **kwargs: Any,
    ) -> Deferred[Any]:
        headers = {"Content-Type": JSON_CONTENT_TYPE}
        headers.update(kwargs.pop("headers", None) or {})
        return self.request(
            "POST", url, json=data, headers=headers, options=options, **kwargs
        )

    def post_form(
        self,
        url: str,
        data: dict[str, Any] | None = None,
        *,
        options: RequestOptions | None = None,
        **kwargs: Any,
    ) -> Deferred[Any]:
        headers = {"Content-Type": FORM_CONTENT_TYPE}
        headers.update(kwargs.pop("headers", None) or {})
        return self.request(
            "POST", url, data=data, headers=headers, options=options, **kwargs
        )

    # ------------------------------------------------------------------
    # Response handling
    # ------------------------------------------------------------------

    def _handle_response(self, opts: RequestOptions, response: httpx.Response) -> Any:
        body = _decode_body(response)
        if opts.debug:
            logger.debug(
                "%s %s -> %d: %r",
                response.request.method, response.request.url,
                response.status_code, body,
            )

        if not response.is_success:
            self._fail_status(opts, response.status_code, body, response.reason_phrase)

        if opts.return_response:
            return response

        # Non-envelope bodies (enums, config endpoints, third-party APIs)
        if opts.external or not ResponseEnvelope.is_standard(body):
            return body

        envelope = ResponseEnvelope.model_validate(body)
        if envelope.is_right:
            return envelope.data

        message = get_message(body, response.status_code, response.reason_phrase)
        action = recovery_for(envelope.code, message)
        if not opts.handle_error and not opts.ignore_msg:
            self._dispatch(action)
        if action.kind is RecoveryKind.PASS_THROUGH_DATA:
            return envelope
        raise ResponseError(message, code=envelope.code, data=envelope.data)

    def _handle_error(self, opts: RequestOptions, error: Any) -> Any:
        if isinstance(error, httpx.TimeoutException):
            message = get_message(None, TIMEOUT_STATUS)
            raise HttpStatusError(message, status=TIMEOUT_STATUS) from error
        if isinstance(error, httpx.HTTPError):
            raise HttpStatusError(str(error) or get_message(None, None)) from error
        return Deferred.already_rejected(error, scheduler=self._scheduler)

    def _fail_status(
        self, opts: RequestOptions, status: int, body: Any, reason: str | None
    ) -> None:
        message = get_message(body, status, reason)
        logger.warning("HTTP %d: %s", status, message)
        if not opts.handle_error:
            self._dispatch(recovery_for(status, message))
        raise HttpStatusError(message, status=status, data=body)

    def _dispatch(self, action: RecoveryAction) -> None:
        if self._on_recovery is not None:
            self._on_recovery(action)
