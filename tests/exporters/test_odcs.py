import yaml

from celine.datamodel.exporters.odcs import export_model, export_model_yaml, export_odcs_yaml, export_table
from celine.datamodel.schemas.enums import MedallionLayer, SCDPattern


def test_header_defaults(orders):
    doc = export_table(orders)

    assert doc["apiVersion"] == "v3.1.0"
    assert doc["kind"] == "DataContract"
    assert doc["id"] == str(orders.id)
    assert doc["name"] == "orders"
    assert doc["version"] == "1.0.0"
    assert doc["status"] == "draft"
    assert "customProperties" not in doc


def test_metadata_is_emitted_verbatim(orders):
    orders.odcl_metadata = {
        "id": "orders-v2",
        "version": "2.1.0",
        "domain": "sales",
        "servicelevels": {"latency": {"threshold": "1h"}},
        "customProperties": [{"property": "retentionDays", "value": 30}],
    }
    doc = export_table(orders)

    assert doc["id"] == "orders-v2"
    assert doc["version"] == "2.1.0"
    assert doc["domain"] == "sales"
    assert doc["servicelevels"] == {"latency": {"threshold": "1h"}}
    assert doc["customProperties"] == [{"property": "retentionDays", "value": 30}]


def test_typed_table_fields_become_custom_properties(orders):
    orders.medallion_layers = [MedallionLayer.SILVER]
    orders.scd_pattern = SCDPattern.TYPE_1
    orders.schema_name = "sales"
    orders.tags = ["finance"]
    doc = export_table(orders)

    assert doc["tags"] == ["finance"]
    assert doc["customProperties"] == [
        {"property": "medallionLayers", "value": ["silver"]},
        {"property": "scdPattern", "value": "TYPE_1"},
        {"property": "schemaName", "value": "sales"},
    ]


def test_schema_properties(customers):
    [schema] = export_table(customers)["schema"]

    assert schema["name"] == "customers"
    assert list(schema["properties"]) == [
        "id",
        "email",
        "created_at",
        "address",
        "tags",
        "attrs",
        "tier",
    ]
    assert schema["properties"]["id"] == {"type": "BIGINT", "required": True, "primaryKey": True}
    assert schema["properties"]["email"] == {
        "type": "VARCHAR(255)",
        "required": False,
        "description": "Contact email",
        "customProperties": [{"property": "constraints", "value": ["UNIQUE"]}],
    }
    assert schema["properties"]["address"]["properties"] == {
        "city": {"type": "STRING", "required": True},
        "zip": {"type": "STRING", "required": False},
    }


def test_yaml_output(customers):
    doc = yaml.safe_load(export_odcs_yaml(customers))
    assert doc == export_table(customers)


def test_model(model, orders):
    assert list(export_model(model)) == ["customers", "orders"]
    assert list(export_model(model, table_ids=[orders.id])) == ["orders"]

    texts = export_model_yaml(model)
    assert yaml.safe_load(texts["orders"])["name"] == "orders"
