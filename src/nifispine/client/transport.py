"""
HTTP transport to the NiFi REST API.

``Transport`` is the only surface the status client depends on: four verbs
that return the raw JSON body as text. ``HttpxTransport`` implements it over
one ``httpx.Client`` rooted at ``<server>/nifi-api``, signing every request
with the bearer token and the session cookies issued at login.

Examples:
    >>> with HttpxTransport.login("https://nifi:8443", "admin", "secret") as transport:
    ...     body = transport.get("/flow/process-groups/root/status", {"recursive": "true"})

Tags:
    http, httpx, transport, authentication, nifi-spine
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from nifispine.core.errors import (
    ApiError,
    AuthenticationError,
    TransportError,
    UnexpectedContentTypeError,
)
from nifispine.core.logging import get_logger

logger = get_logger(__name__)

API_PREFIX = "/nifi-api"
JSON_CONTENT_TYPE = "application/json"

Params = Mapping[str, str] | None


class Transport(Protocol):
    """Verb-level access to the REST API returning raw response bodies."""

    def get(self, path: str, params: Params = None) -> str: ...

    def post(self, path: str, body: Any = None, params: Params = None) -> str: ...

    def put(self, path: str, body: Any = None, params: Params = None) -> str: ...

    def delete(self, path: str, params: Params = None) -> str: ...

    def close(self) -> None: ...


def api_path(uri: str) -> str:
    """Path of an absolute API uri relative to ``/nifi-api``.

    Asynchronous requests (version updates, queue listings) answer with the
    absolute uri of the request resource; the transport wants the API path.
    """
    path = httpx.URL(uri).path
    if path.startswith(API_PREFIX + "/"):
        return path[len(API_PREFIX) :]
    return path


class HttpxTransport:
    """``Transport`` over ``httpx``.

    Args:
        server_url: scheme and authority, e.g. ``https://nifi:8443``
        token: bearer token, sent as ``Authorization`` when given
        cookies: session cookies issued alongside the token
        verify: passed to httpx (bool or CA bundle path)
        timeout: seconds per request
        client: pre-built ``httpx.Client`` (tests use ``httpx.MockTransport``)
    """

    def __init__(
        self,
        server_url: str,
        *,
        token: str | None = None,
        cookies: Mapping[str, str] | None = None,
        verify: bool | str = True,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ):
        self.server_url = server_url.rstrip("/")
        headers = {"Accept": JSON_CONTENT_TYPE}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = client or httpx.Client(verify=verify, timeout=timeout)
        self._client.base_url = httpx.URL(self.server_url + API_PREFIX)
        self._client.headers.update(headers)
        if cookies:
            self._client.cookies.update(cookies)

    @classmethod
    def login(
        cls,
        server_url: str,
        username: str,
        password: str,
        *,
        verify: bool | str = True,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> HttpxTransport:
        """Exchange username/password for a token and return a signed transport."""
        owned = client is None
        client = client or httpx.Client(verify=verify, timeout=timeout)
        url = server_url.rstrip("/") + API_PREFIX + "/access/token"
        try:
            response = client.post(url, data={"username": username, "password": password})
        except httpx.HTTPError as e:
            if owned:
                client.close()
            raise TransportError(f"Login request failed: {e}", cause=e).with_context(url=url) from e

        if response.status_code > 299:
            logger.warning("login_rejected", url=url, status=response.status_code)
            if owned:
                client.close()
            raise AuthenticationError(
                f"login: {response.text} ({response.status_code} {response.reason_phrase})"
            ).with_context(url=url, http_status=response.status_code)

        logger.debug("login_succeeded", url=url, user=username)
        return cls(
            server_url,
            token=response.text.strip(),
            cookies=dict(response.cookies),
            client=client,
        )

    # ── Verbs ─────────────────────────────────────────────────────────────

    def get(self, path: str, params: Params = None) -> str:
        return self._call("GET", path, params=params)

    def post(self, path: str, body: Any = None, params: Params = None) -> str:
        return self._call("POST", path, body=body, params=params)

    def put(self, path: str, body: Any = None, params: Params = None) -> str:
        return self._call("PUT", path, body=body, params=params)

    def delete(self, path: str, params: Params = None) -> str:
        return self._call("DELETE", path, params=params)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ── Internals ────────────────────────────────────────────────────────

    def _call(self, method: str, path: str, *, body: Any = None, params: Params = None) -> str:
        content = None
        headers = {}
        if body is not None:
            content = body if isinstance(body, (bytes, str)) else json.dumps(body)
            headers["Content-Type"] = JSON_CONTENT_TYPE

        url = self.server_url + API_PREFIX + path
        logger.debug("api_request", method=method, path=path, params=dict(params or {}))
        try:
            response = self._client.request(
                method, path, params=params, content=content, headers=headers
            )
        except httpx.HTTPError as e:
            logger.warning("api_request_failed", method=method, path=path, error=str(e))
            raise TransportError(f"{method} {path} failed: {e}", cause=e).with_context(
                url=url
            ) from e

        if not response.is_success:
            logger.warning("api_error", method=method, path=path, status=response.status_code)
            raise ApiError(
                f"{response.status_code} {response.reason_phrase}: {response.text}",
                http_status=response.status_code,
            ).with_context(url=url)

        content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        if content_type != JSON_CONTENT_TYPE:
            raise UnexpectedContentTypeError(
                f"unexpected content type: {content_type or '<none>'}",
                http_status=response.status_code,
            ).with_context(url=url)

        return response.text


__all__ = ["Transport", "HttpxTransport", "API_PREFIX", "api_path"]
