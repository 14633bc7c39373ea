# mockgate/api/matching/schema.py
"""
Schema-based request matching.

match_by_schema(imposter) builds the predicate the router consults for every
candidate imposter. The declared schema file picks the engine by extension:
  .json        -> JSON Schema (jsonschema)
  .xml / .xsd  -> XML Schema (lxml)
Any failure (missing file, empty body, parse error, violation) means
"no match" for that imposter; the predicate itself never raises.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Awaitable, Callable, Iterator, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.validators import validator_for
from lxml import etree
from referencing import Registry
from referencing.exceptions import Unresolvable
from starlette.requests import Request

from ..imposters import Imposter
from .body import rewound_body
from .cache import SchemaCache
from .types import (
    EmptyRequestBody,
    RequestBodyParseError,
    SchemaFileNotFound,
    SchemaFileReadError,
    SchemaKind,
    SchemaMatchError,
    SchemaMatchResult,
    SchemaParseError,
    SchemaViolation,
    UnsupportedSchemaExtension,
)

logger = logging.getLogger("mockgate")

SchemaMatcher = Callable[[Request], Awaitable[bool]]


# -------------------------
# Public API
# -------------------------
def match_by_schema(imposter: Imposter, cache: Optional[SchemaCache] = None) -> SchemaMatcher:
    async def matcher(request: Request) -> bool:
        try:
            result = await validate_request_schema(imposter, request, cache=cache)
        except Exception:
            logger.exception("[schema] unexpected failure imposter=%s", imposter.label)
            return False

        if not result.matched:
            logger.warning("[schema] no match imposter=%s err=%s", imposter.label, result.diagnostic)
        return result.matched

    return matcher


async def validate_request_schema(
    imposter: Imposter,
    request: Request,
    *,
    cache: Optional[SchemaCache] = None,
) -> SchemaMatchResult:
    declared = imposter.declared_schema_file()
    if declared is None:
        return SchemaMatchResult.ok()

    kind = SchemaKind.from_path(declared)
    try:
        if kind is SchemaKind.JSON:
            await _validate_json(imposter, declared, request, cache)
        elif kind is SchemaKind.XML:
            await _validate_xml(imposter, declared, request, cache)
        else:
            raise UnsupportedSchemaExtension(f"unknown schema file extension: {declared}")
    except SchemaMatchError as e:
        return SchemaMatchResult.failed(e)

    return SchemaMatchResult.ok()


# -------------------------
# Shared steps
# -------------------------
def _existing_schema_file(imposter: Imposter, declared: str) -> Path:
    path = Path(imposter.resolve_file_path(declared))
    if not path.exists():
        raise SchemaFileNotFound(f"the schema file {path} not found")
    return path


def _require_body(body: bytes) -> None:
    if not body:
        raise EmptyRequestBody("unexpected empty body request")


def _read_schema_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise SchemaFileReadError(f"error reading the schema file {path}: {e}") from e


def _load(path: Path, kind: SchemaKind, loader: Callable[[Path], Any], cache: Optional[SchemaCache]) -> Any:
    if cache is None:
        return loader(path)
    return cache.get_or_load(path, kind, loader)


# -------------------------
# JSON Schema
# -------------------------
def _load_json_validator(path: Path) -> Any:
    raw = _read_schema_bytes(path)
    try:
        schema = json.loads(raw)
    except ValueError as e:
        raise SchemaParseError(f"error parsing json schema {path}: {e}") from e
    if not isinstance(schema, (dict, bool)):
        raise SchemaParseError(f"json schema {path} must be an object or a boolean")

    cls = validator_for(schema, default=Draft202012Validator)
    try:
        cls.check_schema(schema)
    except SchemaError as e:
        raise SchemaParseError(f"invalid json schema {path}: {e.message}") from e

    # empty registry: only refs inside the schema itself resolve, nothing is fetched
    return cls(schema, format_checker=cls.FORMAT_CHECKER, registry=Registry())


def _describe_json_error(error: ValidationError) -> str:
    field = ".".join(str(p) for p in error.absolute_path) or "(root)"
    return f"{field}: {error.message}"


async def _validate_json(imposter: Imposter, declared: str, request: Request, cache: Optional[SchemaCache]) -> None:
    schema_file = _existing_schema_file(imposter, declared)

    async with rewound_body(request) as body:
        _require_body(body)
        validator = _load(schema_file, SchemaKind.JSON, _load_json_validator, cache)

        try:
            document = json.loads(body)
        except (ValueError, RecursionError) as e:
            raise RequestBodyParseError(f"error parsing the json request: {e}") from e

        # only the first violation is reported
        try:
            first = next(iter(validator.iter_errors(document)), None)
        except Unresolvable as e:
            raise SchemaParseError(f"unresolvable reference in json schema {schema_file}: {e}") from e
        except RecursionError as e:
            raise RequestBodyParseError(f"json request nested too deeply: {e}") from e
        if first is not None:
            raise SchemaViolation(_describe_json_error(first))


# -------------------------
# XML Schema
# -------------------------
def _xml_parser() -> etree.XMLParser:
    # local files only: no entity expansion, no network fetches
    return etree.XMLParser(resolve_entities=False, no_network=True)


def _load_xml_schema(path: Path) -> etree.XMLSchema:
    raw = _read_schema_bytes(path)
    try:
        root = etree.fromstring(raw, _xml_parser(), base_url=str(path))
        return etree.XMLSchema(root)
    except (etree.XMLSyntaxError, etree.XMLSchemaParseError) as e:
        raise SchemaParseError(f"error parsing xsd schema {path}: {e}") from e


@contextmanager
def _parsed_xml(body: bytes) -> Iterator[etree._ElementTree]:
    try:
        root = etree.fromstring(body, _xml_parser())
    except etree.XMLSyntaxError as e:
        raise RequestBodyParseError(f"error parsing the xml request: {e}") from e

    try:
        yield root.getroottree()
    finally:
        root.clear()


def _describe_xml_error(error: etree.DocumentInvalid) -> str:
    first = next(iter(error.error_log), None)
    if first is None:
        return str(error)
    return f"line {first.line}: {first.message}"


async def _validate_xml(imposter: Imposter, declared: str, request: Request, cache: Optional[SchemaCache]) -> None:
    schema_file = _existing_schema_file(imposter, declared)

    async with rewound_body(request) as body:
        _require_body(body)
        schema = _load(schema_file, SchemaKind.XML, _load_xml_schema, cache)

        with _parsed_xml(body) as document:
            try:
                schema.assertValid(document)
            except etree.DocumentInvalid as e:
                raise SchemaViolation(_describe_xml_error(e)) from e
