"""
Manifest Test Factory

Sample payloads, a controllable clock and a scripted upstream origin served
through httpx.MockTransport.
"""

from typing import Any

import httpx
import orjson

CONCERT_PAYLOAD = {
    "bands": [
        {"name": "Night Owls", "photos": 24},
        {"name": "Glass Harbor", "photos": 17},
    ]
}

EVENTS_PAYLOAD = {"events": [{"title": "Winter Gala", "photos": 40}]}

PORTFOLIO_PAYLOAD = {"collections": [{"slug": "coastline"}, {"slug": "city"}, {"slug": "dusk"}]}

START_TIME = 1_765_000_000.0


class FakeClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UpstreamStub:
    """
    Scripted manifest origin.

    Every request is recorded in ``calls``. Behavior can be changed between
    requests:

        upstream.fail_with = httpx.ConnectError("connection refused")
        upstream.status_for["Concert/"] = 404
    """

    def __init__(self, payloads: dict[str, Any] | None = None, etag: str | None = None):
        self.payloads = payloads if payloads is not None else {
            "concert": CONCERT_PAYLOAD,
            "events": EVENTS_PAYLOAD,
            "portfolio": PORTFOLIO_PAYLOAD,
        }
        self.default_payload: Any = {"items": []}
        self.etag = etag
        self.fail_with: Exception | None = None
        self.status_for: dict[str, int] = {}
        self.raw_body: bytes | None = None
        self.calls: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)

        if self.fail_with is not None:
            raise self.fail_with

        for fragment, status in self.status_for.items():
            if fragment in url:
                return httpx.Response(status, content=b'{"error": "scripted"}')

        headers = {"etag": self.etag} if self.etag else {}
        if self.raw_body is not None:
            return httpx.Response(200, content=self.raw_body, headers=headers)
        return httpx.Response(200, content=orjson.dumps(self.payload_for(url)), headers=headers)

    def payload_for(self, url: str) -> Any:
        filename = url.rsplit("/", 1)[-1]
        for name, payload in self.payloads.items():
            if filename.startswith(name):
                return payload
        return self.default_payload

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def calls_for(self, fragment: str) -> int:
        return sum(1 for url in self.calls if fragment in url)
