import pytest

from mockgate.api.matching.types import SchemaKind


@pytest.mark.parametrize("path,kind", [
    ("schemas/create.json", SchemaKind.JSON),
    ("/abs/dir/note.xsd", SchemaKind.XML),
    ("note.xml", SchemaKind.XML),
    ("archive.tar.json", SchemaKind.JSON),
    ("schema.JSON", SchemaKind.UNSUPPORTED),
    ("schema.XSD", SchemaKind.UNSUPPORTED),
    ("schema.yaml", SchemaKind.UNSUPPORTED),
    ("schema", SchemaKind.UNSUPPORTED),
    ("dir.json/schema", SchemaKind.UNSUPPORTED),
    ("", SchemaKind.UNSUPPORTED),
])
def test_schema_kind_from_path(path, kind):
    assert SchemaKind.from_path(path) is kind
