from celine.datamodel.parsers.contract import parse_contract_document
from celine.datamodel.schemas.enums import DatabaseType


def test_table_name_from_info_title(data_contract_doc):
    table, diagnostics = parse_contract_document(data_contract_doc)
    assert table.name == "Orders"
    assert diagnostics == []


def test_name_falls_back_to_model_key(data_contract_doc):
    del data_contract_doc["info"]["title"]
    table, _ = parse_contract_document(data_contract_doc)
    assert table.name == "orders"


def test_ref_is_resolved(data_contract_doc):
    table, _ = parse_contract_document(data_contract_doc)
    status = table.get_column("status")

    assert status.data_type == "string"
    assert status.nullable is False
    assert status.description == "Order status"
    assert status.enum_values == ["new", "paid"]


def test_nested_array_fields(data_contract_doc):
    table, _ = parse_contract_document(data_contract_doc)
    assert [c.name for c in table.columns] == [
        "order_id",
        "status",
        "lines",
        "lines.sku",
        "lines.qty",
    ]
    assert table.get_column("lines.qty").data_type == "integer"


def test_servers_map_is_normalized(data_contract_doc):
    table, _ = parse_contract_document(data_contract_doc)
    assert table.odcl_metadata["servers"] == [
        {"name": "production", "type": "databricks", "catalog": "main"}
    ]
    assert table.database_type == DatabaseType.DATABRICKS_DELTA


def test_metadata(data_contract_doc):
    table, _ = parse_contract_document(data_contract_doc)
    metadata = table.odcl_metadata

    assert metadata["info"] == data_contract_doc["info"]
    assert metadata["id"] == "urn:datacontract:checkout:orders"
    assert metadata["description"] == "One record per order"
    assert "models" not in metadata
    assert "definitions" not in metadata


def test_unresolved_ref_is_soft(data_contract_doc):
    data_contract_doc["models"]["orders"]["fields"]["status"] = {"$ref": "#/definitions/Nope"}
    table, diagnostics = parse_contract_document(data_contract_doc)

    assert table.get_column("status") is not None
    assert any("Unresolved $ref" in d.message for d in diagnostics)


def test_extra_models_are_reported(data_contract_doc):
    data_contract_doc["models"]["refunds"] = {"fields": {"id": {"type": "string"}}}
    table, diagnostics = parse_contract_document(data_contract_doc)

    assert [c.name for c in table.top_level_columns()][0] == "order_id"
    assert any("of 2" in d.message for d in diagnostics)
