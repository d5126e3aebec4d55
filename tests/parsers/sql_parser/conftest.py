import pytest

from celine.datamodel.parsers.sql import parse_sql


@pytest.fixture
def parse():
    def _parse(sql: str, dialect=None):
        return parse_sql(sql, dialect=dialect)

    return _parse


@pytest.fixture
def orders_ddl():
    return """
    CREATE TABLE sales.orders (
        order_id BIGINT NOT NULL PRIMARY KEY,
        customer_id BIGINT REFERENCES customers(id),
        status VARCHAR(20) DEFAULT 'new' COMMENT 'Lifecycle state',
        amount DECIMAL(10, 2) CHECK (amount >= 0),
        created_at TIMESTAMP
    );
    """
