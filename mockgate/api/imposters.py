from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger("mockgate")

IMPOSTER_SUFFIXES = (".imp.json", ".imp.yml", ".imp.yaml")


class ImposterConfigError(ValueError):
    pass


# -------------------------
# Data model
# -------------------------
@dataclass(frozen=True)
class ImposterRequest:
    method: str
    endpoint: str
    schema_file: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ImposterResponse:
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    body_file: Optional[str] = None


@dataclass(frozen=True)
class Imposter:
    request: ImposterRequest
    response: ImposterResponse
    base_path: str  # the .imp file this imposter was declared in

    @property
    def label(self) -> str:
        return f"{self.request.method} {self.request.endpoint}"

    def declared_schema_file(self) -> Optional[str]:
        return self.request.schema_file

    def resolve_file_path(self, file_path: str) -> str:
        """Paths inside an imposter are relative to the imposter file's directory."""
        return str((Path(self.base_path).parent / file_path).resolve())

    def read_response_body(self) -> bytes:
        if not self.response.body_file:
            return self.response.body.encode("utf-8")

        path = Path(self.resolve_file_path(self.response.body_file))
        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning("[imposter] body file unreadable imposter=%s path=%s err=%s", self.label, path, e)
            return b""


# -------------------------
# Parsing
# -------------------------
def _str_map(raw: Any, where: str) -> Dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ImposterConfigError(f"{where} must be a mapping")
    return {str(k): str(v) for k, v in raw.items()}


def parse_imposter(raw: Any, base_path: str) -> Imposter:
    if not isinstance(raw, dict):
        raise ImposterConfigError("imposter must be a mapping")

    req = raw.get("request")
    if not isinstance(req, dict):
        raise ImposterConfigError("imposter.request is required")

    method = str(req.get("method") or "").strip()
    endpoint = str(req.get("endpoint") or "").strip()
    if not method or not endpoint:
        raise ImposterConfigError("imposter.request needs method and endpoint")

    schema_file = req.get("schemaFile")
    if schema_file is not None and not isinstance(schema_file, str):
        raise ImposterConfigError("imposter.request.schemaFile must be a string")

    res = raw.get("response") or {}
    if not isinstance(res, dict):
        raise ImposterConfigError("imposter.response must be a mapping")

    try:
        status = int(res.get("status", 200))
    except (TypeError, ValueError) as e:
        raise ImposterConfigError(f"imposter.response.status is not a number: {res.get('status')!r}") from e

    body_file = res.get("bodyFile")
    if body_file is not None and not isinstance(body_file, str):
        raise ImposterConfigError("imposter.response.bodyFile must be a string")

    body = res.get("body", "")
    if not isinstance(body, str):
        # inline JSON bodies are allowed in YAML/JSON imposters
        body = json.dumps(body, ensure_ascii=False)

    return Imposter(
        request=ImposterRequest(
            method=method.upper(),
            endpoint=endpoint,
            schema_file=schema_file,
            headers=_str_map(req.get("headers"), "imposter.request.headers"),
            params=_str_map(req.get("params"), "imposter.request.params"),
        ),
        response=ImposterResponse(
            status=status,
            headers=_str_map(res.get("headers"), "imposter.response.headers"),
            body=body,
            body_file=body_file,
        ),
        base_path=base_path,
    )


def _read_imposter_file(p: Path) -> Any:
    raw = p.read_text(encoding="utf-8")
    if p.name.endswith(".imp.json"):
        return json.loads(raw)
    return yaml.safe_load(raw)


def load_imposter_file(p: Path) -> List[Imposter]:
    data = _read_imposter_file(p)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ImposterConfigError(f"{p} must contain a list of imposters")
    base_path = str(p.resolve())
    return [parse_imposter(item, base_path) for item in data]


def load_imposters(base_dir: str) -> List[Imposter]:
    """
    Loads every *.imp.json / *.imp.yml / *.imp.yaml under base_dir (recursive),
    in sorted path order. Broken files are logged and skipped.
    """
    root = Path(base_dir)
    if not root.is_dir():
        logger.warning("[imposter] directory not found: %s", root)
        return []

    out: List[Imposter] = []
    for p in sorted(root.rglob("*")):
        if not p.is_file() or not p.name.endswith(IMPOSTER_SUFFIXES):
            continue
        try:
            loaded = load_imposter_file(p)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("[imposter] skipping %s: %s", p, e)
            continue
        logger.info("[imposter] loaded %d from %s", len(loaded), p)
        out.extend(loaded)
    return out
