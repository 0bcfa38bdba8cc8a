"""InnerTube search requests sent through a CORS relay."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

import httpx

from logs import logger
from models import ErrorKind, SearchQuery, SearchType

UPSTREAM_SEARCH_URL = "https://www.youtube.com/youtubei/v1/search?prettyPrint=false"

CLIENT_NAME = "WEB"
CLIENT_VERSION = "2.20240101.00.00"

HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Upstream-side result filters ("sp" values of the web search page).
_TYPE_PARAMS: dict[SearchType, Optional[str]] = {
    SearchType.VIDEO: "EgIQAQ==",
    SearchType.CHANNEL: "EgIQAg==",
    SearchType.PLAYLIST: "EgIQAw==",
    SearchType.ALL: None,
}


class TransportError(Exception):
    """Relay request failed before a usable JSON body was obtained."""

    def __init__(self, kind: ErrorKind, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


def build_relay_url(relay_url: str, target: str = UPSTREAM_SEARCH_URL) -> str:
    """Attach the URL-encoded upstream *target* as the relay's ``url`` parameter.

    A relay URL already ending in ``=`` (``http://host/proxy?url=``) is used
    as a prefix.
    """
    encoded = quote(target, safe="")
    if relay_url.endswith("="):
        return relay_url + encoded
    separator = "&" if "?" in relay_url else "?"
    return f"{relay_url}{separator}url={encoded}"


def build_envelope(query: SearchQuery, hl: str = "en", gl: str = "US") -> dict:
    """Request body the web client would send for *query*."""
    body: dict[str, Any] = {
        "context": {
            "client": {
                "clientName": CLIENT_NAME,
                "clientVersion": CLIENT_VERSION,
                "hl": hl,
                "gl": gl,
            }
        }
    }
    if query.continuation:
        body["continuation"] = query.continuation
        return body
    body["query"] = query.text
    params = _TYPE_PARAMS.get(query.type)
    if params:
        body["params"] = params
    return body


class RelayTransport:
    """Dispatch search envelopes to the relay and hand back the raw JSON.

    Does not retry and never touches the cache.
    """

    def __init__(
        self,
        relay_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
        hl: str = "en",
        gl: str = "US",
    ) -> None:
        self._url = build_relay_url(relay_url)
        self._client = client
        self._timeout = timeout
        self._hl = hl
        self._gl = gl

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self, query: SearchQuery) -> dict:
        """POST the envelope for *query* through the relay.

        Raises:
            TransportError: ``network`` when the relay is unreachable,
                ``relay-rejected`` on a non-2xx status, ``malformed-body``
                when the body is not a JSON object.
        """
        envelope = build_envelope(query, hl=self._hl, gl=self._gl)
        if self._client is not None:
            resp = await self._post(self._client, envelope)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await self._post(client, envelope)

        if not resp.is_success:
            logger.warning("relay_rejected", status_code=resp.status_code, url=self._url)
            raise TransportError(
                ErrorKind.RELAY_REJECTED,
                f"Relay responded with HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            data = resp.json()
        except ValueError as exc:
            logger.warning("relay_malformed_body", status_code=resp.status_code)
            raise TransportError(
                ErrorKind.MALFORMED_BODY,
                "Relay response is not valid JSON",
                status_code=resp.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise TransportError(
                ErrorKind.MALFORMED_BODY,
                "Relay response is not a JSON object",
                status_code=resp.status_code,
            )
        return data

    async def _post(self, client: httpx.AsyncClient, envelope: dict) -> httpx.Response:
        try:
            return await client.post(
                self._url, json=envelope, headers=HEADERS, timeout=self._timeout
            )
        except httpx.RequestError as exc:
            logger.warning("relay_unreachable", url=self._url, error=str(exc))
            raise TransportError(ErrorKind.NETWORK, f"Relay unreachable: {exc}") from exc
