# mockgate/api/matching/__init__.py
from .types import SchemaErrorKind, SchemaKind, SchemaMatchError, SchemaMatchResult
from .body import rewound_body
from .cache import SchemaCache
from .schema import match_by_schema, validate_request_schema
from .route import ImposterRoute, ImposterRouter, compile_endpoint

__all__ = [
    "SchemaErrorKind",
    "SchemaKind",
    "SchemaMatchError",
    "SchemaMatchResult",
    "rewound_body",
    "SchemaCache",
    "match_by_schema",
    "validate_request_schema",
    "ImposterRoute",
    "ImposterRouter",
    "compile_endpoint",
]
