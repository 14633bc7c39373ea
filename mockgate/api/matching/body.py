# mockgate/api/matching/body.py
"""
Request body rewind.

The ASGI receive channel behind a Starlette Request can be drained only once.
Every matcher that needs the body goes through `rewound_body`, which captures
the bytes and, on every exit path, installs a replay channel carrying the same
bytes so later matchers and the endpoint can read them again.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Dict

from starlette.requests import Request

from .types import BodyReadError

Message = Dict[str, Any]
Receive = Callable[[], Awaitable[Message]]


class ReplayReceive:
    """
    Receive channel that yields the captured body once (more_body=False),
    then delegates to the transport's own channel so disconnects still arrive.
    """

    def __init__(self, body: bytes, original: Receive) -> None:
        self.body = body
        # never chain replays: a second rewind must not resurrect the first copy
        self.original: Receive = original.original if isinstance(original, ReplayReceive) else original
        self._pending = True

    async def __call__(self) -> Message:
        if self._pending:
            self._pending = False
            return {"type": "http.request", "body": self.body, "more_body": False}
        return await self.original()


def reinstall_body(request: Request, body: bytes) -> None:
    request._receive = ReplayReceive(body, request._receive)
    request._stream_consumed = False
    # request.body() / request.json() serve from this cache
    request._body = body


@asynccontextmanager
async def rewound_body(request: Request) -> AsyncIterator[bytes]:
    captured = bytearray()
    try:
        try:
            async for chunk in request.stream():
                captured.extend(chunk)
        except Exception as e:
            raise BodyReadError(f"error reading the request body: {e!r}") from e
        yield bytes(captured)
    finally:
        reinstall_body(request, bytes(captured))
