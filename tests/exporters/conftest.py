import pytest

from celine.datamodel.schemas.table import Column, DataModel, Table


def _columns(*columns):
    for order, column in enumerate(columns):
        column.column_order = order
    return list(columns)


@pytest.fixture
def customers():
    return Table(
        name="customers",
        schema_name="crm",
        odcl_metadata={"description": "Customer master"},
        columns=_columns(
            Column(name="id", data_type="BIGINT", nullable=False, primary_key=True),
            Column(
                name="email",
                data_type="VARCHAR(255)",
                description="Contact email",
                constraints=["UNIQUE"],
            ),
            Column(name="created_at", data_type="TIMESTAMP", nullable=False),
            Column(name="address", data_type="STRUCT<city: STRING NOT NULL, zip: STRING>"),
            Column(name="address.city", data_type="STRING", nullable=False),
            Column(name="address.zip", data_type="STRING"),
            Column(name="tags", data_type="ARRAY<STRING>"),
            Column(name="attrs", data_type="MAP<STRING, INT>"),
            Column(name="tier", data_type="STRING", enum_values=["free", "pro"]),
        ),
    )


@pytest.fixture
def orders():
    return Table(
        name="orders",
        columns=_columns(
            Column(name="order_id", data_type="BIGINT", nullable=False, primary_key=True),
            Column(name="amount", data_type="DECIMAL(10,2)"),
        ),
    )


@pytest.fixture
def model(customers, orders):
    return DataModel(name="shop", tables=[customers, orders])
