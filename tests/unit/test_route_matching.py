from __future__ import annotations

import asyncio

import pytest

from mockgate.api.matching.route import ImposterRouter, compile_endpoint
from tests.helpers.asgi_requests import make_imposter, make_request


@pytest.mark.parametrize("template,path,ok", [
    ("/gophers", "/gophers", True),
    ("/gophers", "/gophers/1", False),
    ("/gophers/{id}", "/gophers/abc", True),
    ("/gophers/{id}", "/gophers/a/b", False),
    ("/gophers/{id:[0-9]+}", "/gophers/42", True),
    ("/gophers/{id:[0-9]+}", "/gophers/x42", False),
    ("/codes/{code:[A-Z]{3}}", "/codes/ABC", True),
    ("/codes/{code:[A-Z]{3}}", "/codes/ABCD", False),
    ("/files/a.b", "/files/aXb", False),
])
def test_compile_endpoint(template, path, ok):
    assert bool(compile_endpoint(template).match(path)) is ok


def test_compile_endpoint_rejects_unbalanced():
    with pytest.raises(ValueError):
        compile_endpoint("/gophers/{id")


def _find(router, req):
    async def run():
        found = await router.find(req)
        return found, await req.body()

    return asyncio.run(run())


def test_router_checks_method_headers_params():
    imp = make_imposter(
        None,
        method="GET",
        endpoint="/search",
        headers={"X-Api-Key": "k1"},
        params={"q": "gopher"},
    )
    router = ImposterRouter([imp])

    ok = make_request(method="get", path="/search", query="q=gopher", headers={"x-api-key": "k1"})
    assert _find(router, ok)[0] is imp

    for req in (
        make_request(method="POST", path="/search", query="q=gopher", headers={"X-Api-Key": "k1"}),
        make_request(method="GET", path="/search", query="q=other", headers={"X-Api-Key": "k1"}),
        make_request(method="GET", path="/search", query="q=gopher", headers={"X-Api-Key": "k2"}),
        make_request(method="GET", path="/search", query="q=gopher"),
    ):
        assert _find(router, req)[0] is None


def test_schema_failure_falls_through_to_next_candidate():
    strict = make_imposter("item.schema.json")
    xml = make_imposter("note.xsd")
    loose = make_imposter(None)
    router = ImposterRouter([strict, xml, loose])

    found, after = _find(router, make_request(b'{"id": 5}'))
    assert found is strict
    assert after == b'{"id": 5}'

    # both schema candidates consume the body; the last still sees it intact
    found, after = _find(router, make_request(b'{"id": "five"}'))
    assert found is loose
    assert after == b'{"id": "five"}'


def test_invalid_endpoint_template_is_skipped():
    broken = make_imposter(None, endpoint="/x/{id")
    good = make_imposter(None, endpoint="/x/{id}")
    router = ImposterRouter([broken, good])
    assert len(router) == 1
    assert _find(router, make_request(path="/x/1"))[0] is good
