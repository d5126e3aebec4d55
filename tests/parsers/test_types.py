import pytest

from celine.datamodel.core.errors import TypeExpressionError
from celine.datamodel.parsers.types import (
    flatten_type_text,
    is_complex_type,
    normalize_data_type,
    parse_type,
    type_keyword,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("string", "STRING"),
        ("  varchar(10) ", "VARCHAR(10)"),
        ("struct<a: string>", "STRUCT<a: string>"),
        ("Array<Struct<x: int>>", "ARRAY<Struct<x: int>>"),
        ("", ""),
    ],
)
def test_normalize_data_type(raw, expected):
    assert normalize_data_type(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("DECIMAL(10,2)", "DECIMAL"),
        ("varchar(255)", "VARCHAR"),
        ("ARRAY<INT>", "ARRAY"),
        ("DOUBLE PRECISION", "DOUBLE PRECISION"),
        ("TIMESTAMP", "TIMESTAMP"),
    ],
)
def test_type_keyword(raw, expected):
    assert type_keyword(raw) == expected


def test_is_complex_type():
    assert is_complex_type("STRUCT<a: INT>")
    assert is_complex_type("map < string, int >")
    assert not is_complex_type("STRUCT")
    assert not is_complex_type("INT")


def test_parse_type_tree():
    node = parse_type("STRUCT<id: BIGINT, tags: ARRAY<STRING>, attrs: MAP<STRING, INT>>")
    assert node.kind == "struct"
    assert [f.name for f in node.fields] == ["id", "tags", "attrs"]
    assert node.fields[1].type.kind == "array"
    assert node.fields[1].type.element.text == "STRING"
    assert node.fields[2].type.kind == "map"
    assert node.fields[2].type.key.text == "STRING"
    assert node.fields[2].type.value.text == "INT"


def test_parse_type_accepts_space_separated_fields():
    node = parse_type("STRUCT<id BIGINT, amount DECIMAL(10, 2)>")
    assert [(f.name, f.type.text) for f in node.fields] == [
        ("id", "BIGINT"),
        ("amount", "DECIMAL(10, 2)"),
    ]


def test_parse_type_quoted_field_names():
    node = parse_type("STRUCT<`first name`: STRING>")
    assert node.fields[0].name == "first name"


@pytest.mark.parametrize(
    "bad",
    [
        "STRUCT<a: INT",
        "ARRAY<INT",
        "MAP<STRING>",
        "STRUCT<a: DECIMAL(10, 2>",
        "STRUCT<a: INT>>",
    ],
)
def test_malformed_types_raise(bad):
    with pytest.raises(TypeExpressionError):
        parse_type(bad)


def test_flatten_depth_first():
    fields = flatten_type_text("STRUCT<a: STRUCT<b: STRUCT<c: INT>>, d: STRING>", "root")
    assert [f.path for f in fields] == ["root.a", "root.a.b", "root.a.b.c", "root.d"]
    assert fields[-1].data_type == "STRING"


def test_flatten_non_struct_yields_nothing():
    assert flatten_type_text("ARRAY<INT>", "x") == []
    assert flatten_type_text("MAP<STRING, STRUCT<a: INT>>", "x") == []
    assert flatten_type_text("INT", "x") == []


def test_nested_complex_types_parse():
    node = parse_type("ARRAY<STRUCT<s: INT, m: MAP<STRING, STRUCT<v: DOUBLE>>>>")
    assert node.kind == "array"
    assert node.element.kind == "struct"
    inner = node.element.fields[1].type
    assert inner.kind == "map"
    assert inner.value.kind == "struct"
    assert inner.value.text == "STRUCT<v: DOUBLE>"


def test_flatten_array_of_struct_uses_array_path():
    fields = flatten_type_text("ARRAY<STRUCT<s: INT, t: ARRAY<STRUCT<u: STRING>>>>", "x")
    assert [(f.path, f.data_type) for f in fields] == [
        ("x.s", "INT"),
        ("x.t", "ARRAY<STRUCT<u: STRING>>"),
        ("x.t.u", "STRING"),
    ]


def test_nested_struct_keeps_parent_text():
    node = parse_type("STRUCT<n: STRING, a: STRUCT<s: STRING>>")
    assert node.text == "STRUCT<n: STRING, a: STRUCT<s: STRING>>"
    assert node.fields[1].type.kind == "struct"
