from celine.datamodel.exporters.odcs import export_table
from celine.datamodel.parsers.contract import parse_contract, parse_contract_document
from celine.datamodel.schemas.enums import DatabaseType, MedallionLayer, SCDPattern


def test_table_fields(odcs_yaml):
    table, diagnostics = parse_contract(odcs_yaml)

    assert table.name == "orders"
    assert table.medallion_layers == [MedallionLayer.SILVER]
    assert table.scd_pattern == SCDPattern.TYPE_2
    assert table.tags == ["finance"]
    assert table.database_type == DatabaseType.POSTGRES
    assert table.quality == [{"rule": "rowCount", "mustBeGreaterThan": 0}]
    assert diagnostics == []


def test_columns(odcs_doc):
    table, _ = parse_contract_document(odcs_doc)

    assert [c.name for c in table.columns] == [
        "order_id",
        "status",
        "customer_id",
        "shipping",
        "shipping.city",
        "shipping.zip",
    ]

    order_id = table.get_column("order_id")
    assert order_id.nullable is False
    assert order_id.primary_key is True
    assert order_id.description == "Order key"

    assert table.get_column("status").enum_values == ["new", "paid", "shipped"]
    assert table.get_column("customer_id").foreign_key.table_id == "customers"
    assert table.get_column("shipping.city").nullable is False


def test_odcs_types_are_kept_as_written(odcs_doc):
    table, _ = parse_contract_document(odcs_doc)
    assert table.get_column("order_id").data_type == "bigint"
    assert table.get_column("status").data_type == "string"


def test_unknown_top_level_keys_are_preserved(odcs_doc):
    table, _ = parse_contract_document(odcs_doc)
    metadata = table.odcl_metadata

    for key in ("id", "version", "status", "domain", "dataProduct", "team", "servicelevels"):
        assert metadata[key] == odcs_doc[key]
    assert metadata["description"] == {"purpose": "All confirmed orders"}
    assert metadata["customProperties"] == [{"property": "retentionDays", "value": 30}]
    for key in ("apiVersion", "kind", "schema", "name"):
        assert key not in metadata


def test_servers_are_normalized(odcs_doc):
    table, _ = parse_contract_document(odcs_doc)
    assert table.odcl_metadata["servers"] == [
        {"name": "prod", "type": "postgres", "host": "db.internal"}
    ]


def test_properties_as_list(odcs_doc):
    odcs_doc["schema"][0]["properties"] = [
        {"name": "a", "logicalType": "integer", "required": True},
        {"name": "b", "physicalType": "VARCHAR(10)"},
    ]
    table, _ = parse_contract_document(odcs_doc)
    assert [(c.name, c.data_type, c.nullable) for c in table.columns] == [
        ("a", "integer", False),
        ("b", "VARCHAR(10)", True),
    ]


def test_array_items_properties(odcs_doc):
    odcs_doc["schema"][0]["properties"] = {
        "lines": {
            "type": "array",
            "items": {"type": "object", "properties": {"sku": {"type": "string"}}},
        }
    }
    table, _ = parse_contract_document(odcs_doc)
    assert [c.name for c in table.columns] == ["lines", "lines.sku"]


def test_extra_schema_objects_are_reported(odcs_doc):
    odcs_doc["schema"].append({"name": "refunds", "properties": {"id": {"type": "int"}}})
    table, diagnostics = parse_contract_document(odcs_doc)
    assert table.name == "orders"
    assert any("first of 2" in d.message for d in diagnostics)


def test_unknown_enum_value_is_soft(odcs_doc):
    odcs_doc["customProperties"] = [{"property": "medallionLayers", "value": ["copper"]}]
    table, diagnostics = parse_contract_document(odcs_doc)
    assert table.medallion_layers == []
    assert any("copper" in d.message for d in diagnostics)


def test_custom_properties_as_map(odcs_doc):
    odcs_doc["customProperties"] = {"modelingLevel": "logical", "owner": "me"}
    table, _ = parse_contract_document(odcs_doc)
    assert table.modeling_level.value == "logical"
    assert table.odcl_metadata["customProperties"] == {"owner": "me"}


def test_name_falls_back_to_schema_name(odcs_doc):
    del odcs_doc["name"]
    table, _ = parse_contract_document(odcs_doc)
    assert table.name == "orders"


def test_mutually_exclusive_patterns(odcs_doc):
    odcs_doc["customProperties"] = [
        {"property": "scdPattern", "value": "TYPE_2"},
        {"property": "dataVaultClassification", "value": "Hub"},
    ]
    table, diagnostics = parse_contract_document(odcs_doc)

    assert table.scd_pattern == SCDPattern.TYPE_2
    assert table.data_vault_classification is not None
    assert any("mutually exclusive" in d.message for d in diagnostics)
    assert any("mutually exclusive" in e["message"] for e in table.errors)


def test_round_trip_through_export(odcs_doc):
    table, _ = parse_contract_document(odcs_doc)
    again, diagnostics = parse_contract_document(export_table(table))

    assert diagnostics == []
    assert again.name == table.name
    assert again.odcl_metadata == table.odcl_metadata
    assert again.medallion_layers == table.medallion_layers
    assert again.scd_pattern == table.scd_pattern
    assert again.tags == table.tags
    assert again.quality == table.quality
    assert [c.model_dump() for c in again.columns] == [c.model_dump() for c in table.columns]
