# datamodel/schemas/enums.py
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


def _key(value: Any) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


class _LenientEnum(str, Enum):
    """String enum that also accepts case-insensitive aliases."""

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}

    @classmethod
    def coerce(cls, value: Any) -> Optional["_LenientEnum"]:
        """Return the member matching `value`, or None when nothing matches."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value

        key = _key(value)
        key = cls._aliases().get(key, key)
        for member in cls:
            if key in (_key(member.value), _key(member.name)):
                return member
        return None


class DatabaseType(_LenientEnum):
    DATABRICKS_DELTA = "DATABRICKS_DELTA"
    DATABRICKS_ICEBERG = "DATABRICKS_ICEBERG"
    AWS_GLUE = "AWS_GLUE"
    DATABRICKS_LAKEBASE = "DATABRICKS_LAKEBASE"
    POSTGRES = "POSTGRES"
    MYSQL = "MYSQL"
    SQL_SERVER = "SQL_SERVER"
    DYNAMODB = "DYNAMODB"
    CASSANDRA = "CASSANDRA"
    KAFKA = "KAFKA"
    PULSAR = "PULSAR"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {
            "postgresql": "postgres",
            "mssql": "sql_server",
            "sqlserver": "sql_server",
            "databricks": "databricks_delta",
            "glue": "aws_glue",
        }


class MedallionLayer(_LenientEnum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    OPERATIONAL = "operational"


class SCDPattern(_LenientEnum):
    TYPE_1 = "TYPE_1"
    TYPE_2 = "TYPE_2"

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {"type1": "type_1", "type2": "type_2", "1": "type_1", "2": "type_2"}


class DataVaultClassification(_LenientEnum):
    HUB = "Hub"
    LINK = "Link"
    SATELLITE = "Satellite"


class ModelingLevel(_LenientEnum):
    CONCEPTUAL = "conceptual"
    LOGICAL = "logical"
    PHYSICAL = "physical"
