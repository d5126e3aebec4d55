import pytest
import yaml


@pytest.fixture
def odcs_doc():
    return {
        "apiVersion": "v3.0.2",
        "kind": "DataContract",
        "id": "b6f1c3de-orders",
        "name": "orders",
        "version": "1.2.0",
        "status": "active",
        "domain": "sales",
        "dataProduct": "order-analytics",
        "description": {"purpose": "All confirmed orders"},
        "team": [{"username": "jdoe", "role": "owner"}],
        "servicelevels": {"availability": {"percentage": "99.9%"}},
        "servers": [{"server": "prod", "type": "postgres", "host": "db.internal"}],
        "tags": ["finance"],
        "customProperties": [
            {"property": "medallionLayers", "value": ["silver"]},
            {"property": "scdPattern", "value": "TYPE_2"},
            {"property": "retentionDays", "value": 30},
        ],
        "schema": [
            {
                "name": "orders",
                "quality": [{"rule": "rowCount", "mustBeGreaterThan": 0}],
                "properties": {
                    "order_id": {
                        "type": "bigint",
                        "required": True,
                        "primaryKey": True,
                        "description": "Order key",
                    },
                    "status": {
                        "type": "string",
                        "enum": ["new", "paid", "shipped"],
                    },
                    "customer_id": {
                        "type": "bigint",
                        "customProperties": [
                            {
                                "property": "foreignKey",
                                "value": {"table_id": "customers", "column_name": "id"},
                            }
                        ],
                    },
                    "shipping": {
                        "type": "object",
                        "properties": {
                            "city": {"type": "string", "required": True},
                            "zip": {"type": "string"},
                        },
                    },
                },
            }
        ],
    }


@pytest.fixture
def odcs_yaml(odcs_doc):
    return yaml.safe_dump(odcs_doc, sort_keys=False)


@pytest.fixture
def data_contract_doc():
    return {
        "dataContractSpecification": "1.1.0",
        "id": "urn:datacontract:checkout:orders",
        "info": {"title": "Orders", "version": "2.0.0", "owner": "checkout-team"},
        "servers": {"production": {"type": "databricks", "catalog": "main"}},
        "models": {
            "orders": {
                "description": "One record per order",
                "type": "table",
                "fields": {
                    "order_id": {"type": "string", "required": True, "primaryKey": True},
                    "status": {"$ref": "#/definitions/Status", "required": True},
                    "lines": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "fields": {
                                "sku": {"type": "string"},
                                "qty": {"type": "integer"},
                            },
                        },
                    },
                },
            }
        },
        "definitions": {
            "Status": {
                "type": "string",
                "description": "Order status",
                "enum": ["new", "paid"],
            }
        },
    }


@pytest.fixture
def legacy_doc():
    return {
        "name": "customers",
        "medallion_layer": "bronze",
        "medallion_layers": ["silver"],
        "database_type": "Postgres",
        "schema_name": "crm",
        "tags": ["pii"],
        "odcl_metadata": {"owner": "crm-team"},
        "sla": {"freshness": "1h"},
        "columns": [
            {"name": "id", "data_type": "bigint", "nullable": False, "primary_key": True},
            {"name": "email", "data_type": "varchar(255)", "constraints": ["UNIQUE"]},
            {
                "name": "account_id",
                "data_type": "bigint",
                "foreign_key": {"table_id": "accounts", "column_name": "id"},
            },
            {"name": "tier", "data_type": "string", "enum_values": ["free", "pro"]},
            {"name": "profile", "data_type": "struct<age: int, city: string>"},
        ],
    }
