from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SchemaKind(str, Enum):
    JSON = "json"
    XML = "xml"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_path(cls, path: str) -> "SchemaKind":
        """
        Resolve the validation engine from the declared schema file name.
        Case-sensitive: "schema.JSON" is unsupported.
        """
        name = os.path.basename(path or "")
        dot = name.rfind(".")
        ext = name[dot:] if dot >= 0 else ""
        if ext == ".json":
            return cls.JSON
        if ext in (".xml", ".xsd"):
            return cls.XML
        return cls.UNSUPPORTED


class SchemaErrorKind(str, Enum):
    SCHEMA_FILE_NOT_FOUND = "SchemaFileNotFound"
    EMPTY_REQUEST_BODY = "EmptyRequestBody"
    SCHEMA_FILE_READ_ERROR = "SchemaFileReadError"
    SCHEMA_PARSE_ERROR = "SchemaParseError"
    REQUEST_BODY_PARSE_ERROR = "RequestBodyParseError"
    SCHEMA_VIOLATION = "SchemaViolation"
    UNSUPPORTED_SCHEMA_EXTENSION = "UnsupportedSchemaExtension"
    BODY_READ_ERROR = "BodyReadError"


class SchemaMatchError(Exception):
    kind: SchemaErrorKind

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}"


class SchemaFileNotFound(SchemaMatchError):
    kind = SchemaErrorKind.SCHEMA_FILE_NOT_FOUND


class EmptyRequestBody(SchemaMatchError):
    kind = SchemaErrorKind.EMPTY_REQUEST_BODY


class SchemaFileReadError(SchemaMatchError):
    kind = SchemaErrorKind.SCHEMA_FILE_READ_ERROR


class SchemaParseError(SchemaMatchError):
    kind = SchemaErrorKind.SCHEMA_PARSE_ERROR


class RequestBodyParseError(SchemaMatchError):
    kind = SchemaErrorKind.REQUEST_BODY_PARSE_ERROR


class SchemaViolation(SchemaMatchError):
    kind = SchemaErrorKind.SCHEMA_VIOLATION


class UnsupportedSchemaExtension(SchemaMatchError):
    kind = SchemaErrorKind.UNSUPPORTED_SCHEMA_EXTENSION


class BodyReadError(SchemaMatchError):
    kind = SchemaErrorKind.BODY_READ_ERROR


@dataclass(frozen=True)
class SchemaMatchResult:
    matched: bool
    error: Optional[SchemaMatchError] = None

    @classmethod
    def ok(cls) -> "SchemaMatchResult":
        return cls(matched=True)

    @classmethod
    def failed(cls, error: SchemaMatchError) -> "SchemaMatchResult":
        return cls(matched=False, error=error)

    @property
    def diagnostic(self) -> str:
        return str(self.error) if self.error else ""
