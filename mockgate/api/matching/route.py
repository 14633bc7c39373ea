from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence

from starlette.requests import Request

from ..imposters import Imposter
from .cache import SchemaCache
from .schema import SchemaMatcher, match_by_schema

logger = logging.getLogger("mockgate")


# -------------------------
# Endpoint templates
# -------------------------
def compile_endpoint(template: str) -> re.Pattern:
    """
    "/gophers/{id}"          -> id matches one path segment
    "/gophers/{id:[0-9]+}"   -> id matches the given regex
    Braces inside a variable's regex are balanced, e.g. "{code:[A-Z]{3}}".
    """
    out: List[str] = []
    i = 0
    n = len(template)
    while i < n:
        ch = template[i]
        if ch != "{":
            out.append(re.escape(ch))
            i += 1
            continue

        depth = 1
        j = i + 1
        while j < n and depth:
            if template[j] == "{":
                depth += 1
            elif template[j] == "}":
                depth -= 1
            j += 1
        if depth:
            raise ValueError(f"unbalanced braces in endpoint: {template}")

        var = template[i + 1 : j - 1]
        _, sep, expr = var.partition(":")
        out.append(f"(?:{expr})" if sep else "[^/]+")
        i = j

    return re.compile("^" + "".join(out) + "$")


# -------------------------
# Per-imposter route
# -------------------------
class ImposterRoute:
    """
    All matchers for one imposter. Cheap checks (method, path, headers, query)
    run first; the schema check only runs when they all pass.
    """

    def __init__(self, imposter: Imposter, *, cache: Optional[SchemaCache] = None) -> None:
        self.imposter = imposter
        self._pattern = compile_endpoint(imposter.request.endpoint)
        self._schema_matcher: SchemaMatcher = match_by_schema(imposter, cache)

    def _match_method(self, request: Request) -> bool:
        return request.method.upper() == self.imposter.request.method.upper()

    def _match_path(self, request: Request) -> bool:
        return bool(self._pattern.match(request.url.path))

    def _match_headers(self, request: Request) -> bool:
        for name, value in self.imposter.request.headers.items():
            if request.headers.get(name) != value:
                return False
        return True

    def _match_params(self, request: Request) -> bool:
        for name, value in self.imposter.request.params.items():
            if request.query_params.get(name) != value:
                return False
        return True

    async def matches(self, request: Request) -> bool:
        if not (
            self._match_method(request)
            and self._match_path(request)
            and self._match_headers(request)
            and self._match_params(request)
        ):
            return False
        return await self._schema_matcher(request)


class ImposterRouter:
    def __init__(self, imposters: Sequence[Imposter], *, cache: Optional[SchemaCache] = None) -> None:
        self.routes: List[ImposterRoute] = []
        for imp in imposters:
            try:
                self.routes.append(ImposterRoute(imp, cache=cache))
            except (ValueError, re.error) as e:
                logger.warning("[router] skipping imposter=%s: %s", imp.label, e)

    def __len__(self) -> int:
        return len(self.routes)

    async def find(self, request: Request) -> Optional[Imposter]:
        """First imposter (in load order) whose matchers all pass."""
        for route in self.routes:
            if await route.matches(request):
                return route.imposter
        return None
