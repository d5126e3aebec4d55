import pytest

from celine.datamodel.core.errors import SchemaParseError
from celine.datamodel.parsers.formats import parse_protobuf

ORDER_PROTO = """
syntax = "proto3";

package shop.v1;

import "google/protobuf/timestamp.proto";
option java_package = "com.shop";

// An order placed by a customer
message Order {
  // Order identifier
  int64 id = 1;
  optional string note = 2; // free text
  Status status = 3;
  repeated Line lines = 4;
  map<string, int32> counters = 5;
  google.protobuf.Timestamp created_at = 6 [deprecated = true];
  oneof payment {
    string card = 7;
    string iban = 8;
  }

  message Line {
    string sku = 1;
    int32 qty = 2;
  }
}

enum Status {
  STATUS_UNSPECIFIED = 0;
  STATUS_PAID = 1;
}

service Orders {
  rpc Get (Order) returns (Order);
}
"""


def columns(table):
    return [(c.name, c.data_type, c.nullable) for c in table.columns]


def test_message_becomes_table():
    result = parse_protobuf(ORDER_PROTO)

    assert result.diagnostics == []
    [table] = result.tables
    assert table.name == "Order"
    assert table.odcl_metadata == {"package": "shop.v1"}
    assert columns(table) == [
        ("id", "BIGINT", False),
        ("note", "STRING", True),
        ("status", "STRING", False),
        ("lines", "ARRAY<STRUCT<sku: STRING NOT NULL, qty: INTEGER NOT NULL>>", True),
        ("lines.sku", "STRING", False),
        ("lines.qty", "INTEGER", False),
        ("counters", "MAP<STRING, INTEGER>", False),
        ("created_at", "TIMESTAMP", False),
        ("card", "STRING", True),
        ("iban", "STRING", True),
    ]


def test_comments_become_descriptions():
    [table] = parse_protobuf(ORDER_PROTO).tables
    assert table.get_column("id").description == "Order identifier"
    assert table.get_column("note").description == "free text"
    assert table.get_column("status").description == ""


def test_enum_values():
    [table] = parse_protobuf(ORDER_PROTO).tables
    assert table.get_column("status").enum_values == ["STATUS_UNSPECIFIED", "STATUS_PAID"]


def test_every_top_level_message_is_a_table():
    proto = """
    syntax = "proto2";
    message A { required string x = 1; }
    message B { optional A a = 1; }
    """
    result = parse_protobuf(proto)

    assert [t.name for t in result.tables] == ["A", "B"]
    assert columns(result.tables[0]) == [("x", "STRING", False)]
    assert columns(result.tables[1]) == [
        ("a", "STRUCT<x: STRING NOT NULL>", True),
        ("a.x", "STRING", False),
    ]


def test_recursive_message_is_cut():
    result = parse_protobuf("message Node { string name = 1; Node parent = 2; }")

    assert columns(result.tables[0]) == [("name", "STRING", False), ("parent", "STRING", False)]
    assert "Recursive" in result.diagnostics[0].message


def test_unknown_type_is_soft():
    result = parse_protobuf("message T { Missing m = 1; }")
    assert columns(result.tables[0]) == [("m", "STRING", False)]
    assert len(result.diagnostics) == 1


@pytest.mark.parametrize("text", ["message Broken {", "message T { string $x = 1; }"])
def test_unreadable_input(text):
    with pytest.raises(SchemaParseError):
        parse_protobuf(text)
