import pytest

from celine.datamodel.converters.odcl import convert_odcl_to_odcs
from celine.datamodel.core.errors import ConversionError
from celine.datamodel.parsers.contract import parse_contract_document


@pytest.fixture
def odcl():
    return {
        "dataContractSpecification": "0.9.3",
        "id": "orders-contract",
        "info": {
            "title": "Orders",
            "version": "1.0.0",
            "status": "active",
            "description": "Confirmed orders",
            "owner": "checkout",
            "contact": {"name": "Jane", "email": "jane@example.com"},
        },
        "terms": {"usage": "internal"},
        "domain": "sales",
        "team": [{"username": "jane"}],
        "servers": {"prod": {"type": "postgres", "host": "db"}},
        "models": {
            "orders": {
                "type": "table",
                "description": "One row per order",
                "fields": {
                    "id": {"type": "bigint", "required": True},
                    "status": {"$ref": "#/definitions/Status", "required": True},
                    "address": {
                        "type": "object",
                        "fields": {"city": {"type": "string"}},
                    },
                    "lines": {"type": "array", "items": {"type": "string"}},
                },
            }
        },
        "definitions": {"Status": {"type": "string", "enum": ["new", "paid"]}},
    }


def test_header(odcl):
    odcs = convert_odcl_to_odcs(odcl)

    assert odcs["apiVersion"] == "v3.1.0"
    assert odcs["kind"] == "DataContract"
    assert odcs["id"] == "orders-contract"
    assert odcs["name"] == "Orders"
    assert odcs["version"] == "1.0.0"
    assert odcs["status"] == "active"
    assert odcs["description"] == {"purpose": "Confirmed orders"}


def test_custom_properties(odcl):
    odcs = convert_odcl_to_odcs(odcl)
    assert odcs["customProperties"] == [
        {"property": "owner", "value": "checkout"},
        {"property": "contact", "value": {"name": "Jane", "email": "jane@example.com"}},
        {"property": "terms", "value": {"usage": "internal"}},
        {"property": "dataContractSpecification", "value": "0.9.3"},
    ]


def test_native_keys_and_servers(odcl):
    odcs = convert_odcl_to_odcs(odcl)

    assert odcs["domain"] == "sales"
    assert odcs["team"] == [{"username": "jane"}]
    assert odcs["servers"] == [{"name": "prod", "type": "postgres", "host": "db"}]
    assert "models" not in odcs
    assert "info" not in odcs


def test_ref_is_resolved_and_type_upper_cased(odcl):
    properties = convert_odcl_to_odcs(odcl)["schema"][0]["properties"]

    assert properties["status"] == {"type": "STRING", "required": True, "enum": ["new", "paid"]}
    assert properties["id"] == {"type": "BIGINT", "required": True}


def test_schema_objects(odcl):
    [schema] = convert_odcl_to_odcs(odcl)["schema"]

    assert schema["name"] == "orders"
    assert schema["physicalType"] == "table"
    assert schema["description"] == "One row per order"
    assert schema["properties"]["address"]["properties"] == {"city": {"type": "STRING"}}
    assert schema["properties"]["lines"]["items"] == {"type": "STRING"}


def test_converted_document_parses_as_odcs(odcl):
    table, _ = parse_contract_document(convert_odcl_to_odcs(odcl))
    assert table.name == "Orders"
    assert [c.name for c in table.columns] == ["id", "status", "address", "address.city", "lines"]
    assert table.get_column("status").enum_values == ["new", "paid"]


def test_api_version_override(odcl):
    assert convert_odcl_to_odcs(odcl, api_version="v3.0.2")["apiVersion"] == "v3.0.2"


def test_input_is_not_mutated(odcl):
    before = repr(odcl)
    convert_odcl_to_odcs(odcl)
    assert repr(odcl) == before


@pytest.mark.parametrize("bad", [None, [], "text"])
def test_non_object_input(bad):
    with pytest.raises(ConversionError):
        convert_odcl_to_odcs(bad)
