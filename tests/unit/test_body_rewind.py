from __future__ import annotations

import asyncio

import pytest

from mockgate.api.matching.body import ReplayReceive, rewound_body
from mockgate.api.matching.types import BodyReadError, SchemaErrorKind
from tests.helpers.asgi_requests import make_request


def test_capture_returns_full_body_across_chunks():
    req = make_request(chunks=[b'{"id"', b": 5", b"}"])

    async def run():
        async with rewound_body(req) as body:
            assert body == b'{"id": 5}'
        return await req.body()

    assert asyncio.run(run()) == b'{"id": 5}'


def test_body_is_rereadable_through_receive_channel():
    req = make_request(b"<note/>")

    async def run():
        async with rewound_body(req):
            pass
        msg = await req.receive()
        return msg

    msg = asyncio.run(run())
    assert msg["type"] == "http.request"
    assert msg["body"] == b"<note/>"
    assert msg["more_body"] is False


def test_body_reinstalled_when_scope_raises():
    req = make_request(b"payload")

    async def run():
        with pytest.raises(RuntimeError):
            async with rewound_body(req) as body:
                assert body == b"payload"
                raise RuntimeError("boom")
        return await req.body()

    assert asyncio.run(run()) == b"payload"


def test_repeated_rewinds_do_not_duplicate_body():
    req = make_request(b"abc")

    async def run():
        for _ in range(3):
            async with rewound_body(req) as body:
                assert body == b"abc"
        assert isinstance(req.receive, ReplayReceive)
        first = await req.receive()
        # after the replay the channel falls through to the transport
        second = await req.receive()
        return first, second

    first, second = asyncio.run(run())
    assert first["body"] == b"abc"
    assert second["type"] == "http.disconnect"


def test_read_failure_surfaces_and_keeps_partial_body():
    req = make_request(chunks=[b"par", b"tial", b"!"], disconnect_after=2)

    async def run():
        with pytest.raises(BodyReadError) as exc:
            async with rewound_body(req):
                pytest.fail("scope must not be entered on read failure")
        return exc.value, await req.body()

    err, leftover = asyncio.run(run())
    assert err.kind == SchemaErrorKind.BODY_READ_ERROR
    assert leftover == b"partial"


def test_empty_body_is_captured_as_empty_bytes():
    req = make_request(b"")

    async def run():
        async with rewound_body(req) as body:
            assert body == b""
        return await req.body()

    assert asyncio.run(run()) == b""
