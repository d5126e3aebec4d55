import json

import pytest

from celine.datamodel.core.errors import SchemaParseError
from celine.datamodel.parsers.formats import parse_avro

USER = {
    "type": "record",
    "name": "User",
    "namespace": "com.acme",
    "doc": "A user",
    "fields": [
        {"name": "id", "type": "long"},
        {"name": "email", "type": ["null", "string"], "default": None, "doc": "Primary email"},
        {"name": "birthday", "type": {"type": "int", "logicalType": "date"}},
        {
            "name": "balance",
            "type": {"type": "bytes", "logicalType": "decimal", "precision": 10, "scale": 2},
        },
        {
            "name": "status",
            "type": {"type": "enum", "name": "Status", "symbols": ["ACTIVE", "BLOCKED"]},
        },
        {
            "name": "address",
            "type": {
                "type": "record",
                "name": "Address",
                "fields": [
                    {"name": "city", "type": "string"},
                    {"name": "zip", "type": ["null", "string"]},
                ],
            },
        },
        {"name": "previous", "type": ["null", "Address"]},
        {"name": "phones", "type": {"type": "array", "items": "string"}},
        {
            "name": "orders",
            "type": {
                "type": "array",
                "items": {
                    "type": "record",
                    "name": "Order",
                    "fields": [{"name": "sku", "type": "string"}],
                },
            },
        },
        {"name": "attrs", "type": {"type": "map", "values": "int"}},
    ],
}


def columns(table):
    return [(c.name, c.data_type, c.nullable) for c in table.columns]


def test_record():
    result = parse_avro(json.dumps(USER))

    assert result.diagnostics == []
    [table] = result.tables
    assert table.name == "User"
    assert table.odcl_metadata == {"namespace": "com.acme", "description": "A user"}
    assert table.schema_name is None
    assert columns(table) == [
        ("id", "BIGINT", False),
        ("email", "STRING", True),
        ("birthday", "DATE", False),
        ("balance", "DECIMAL(10,2)", False),
        ("status", "STRING", False),
        ("address", "STRUCT<city: STRING NOT NULL, zip: STRING>", False),
        ("address.city", "STRING", False),
        ("address.zip", "STRING", True),
        ("previous", "STRUCT<city: STRING NOT NULL, zip: STRING>", True),
        ("previous.city", "STRING", False),
        ("previous.zip", "STRING", True),
        ("phones", "ARRAY<STRING>", False),
        ("orders", "ARRAY<STRUCT<sku: STRING NOT NULL>>", False),
        ("orders.sku", "STRING", False),
        ("attrs", "MAP<STRING, INTEGER>", False),
    ]
    assert table.get_column("email").description == "Primary email"
    assert table.get_column("status").enum_values == ["ACTIVE", "BLOCKED"]


def test_nested_arrays():
    schema = {
        "type": "record",
        "name": "Grid",
        "fields": [{"name": "cells", "type": {"type": "array", "items": {"type": "array", "items": "int"}}}],
    }
    [table] = parse_avro(schema).tables
    assert columns(table) == [("cells", "ARRAY<ARRAY<INTEGER>>", False)]


def test_list_of_records_shares_named_types():
    schemas = [
        {"type": "record", "name": "Money", "fields": [{"name": "amount", "type": "double"}]},
        {"type": "record", "name": "Invoice", "fields": [{"name": "total", "type": "Money"}]},
        {"type": "enum", "name": "NotARecord", "symbols": ["A"]},
    ]
    result = parse_avro(schemas)

    assert [t.name for t in result.tables] == ["Money", "Invoice"]
    assert [c.name for c in result.tables[1].columns] == ["total", "total.amount"]
    assert [d.message for d in result.hard_errors] == ["schema[2]: missing fields"]


def test_multi_branch_union_is_soft():
    schema = {"type": "record", "name": "T", "fields": [{"name": "v", "type": ["string", "int"]}]}
    result = parse_avro(schema)

    assert columns(result.tables[0]) == [("v", "STRING", True)]
    assert "Union" in result.diagnostics[0].message
    assert result.hard_errors == []


def test_invalid_json():
    with pytest.raises(SchemaParseError):
        parse_avro("{")
