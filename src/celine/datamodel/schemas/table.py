# datamodel/schemas/table.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from celine.datamodel.schemas.diagnostics import Diagnostic
from celine.datamodel.schemas.enums import (
    DatabaseType,
    DataVaultClassification,
    MedallionLayer,
    ModelingLevel,
    SCDPattern,
)


class ForeignKey(BaseModel):
    table_id: str
    column_name: str


class Column(BaseModel):
    """A column of the canonical model.

    `name` may be a dot-joined path (`customer.address.city`) for a field
    flattened out of a STRUCT / ARRAY<STRUCT> parent.
    """

    name: str
    data_type: str = ""
    nullable: bool = True
    primary_key: bool = False
    secondary_key: bool = False
    composite_key: Optional[str] = None
    foreign_key: Optional[ForeignKey] = None
    constraints: List[str] = Field(default_factory=list)
    description: str = ""
    quality: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)
    enum_values: List[str] = Field(default_factory=list)
    column_order: int = 0

    @property
    def is_nested(self) -> bool:
        return "." in self.name

    @property
    def parent_path(self) -> Optional[str]:
        if not self.is_nested:
            return None
        return self.name.rsplit(".", 1)[0]


class Table(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    name: str
    columns: List[Column] = Field(default_factory=list)

    database_type: Optional[DatabaseType] = None
    catalog_name: Optional[str] = None
    schema_name: Optional[str] = None

    medallion_layers: List[MedallionLayer] = Field(default_factory=list)
    scd_pattern: Optional[SCDPattern] = None
    data_vault_classification: Optional[DataVaultClassification] = None
    modeling_level: Optional[ModelingLevel] = None

    tags: List[str] = Field(default_factory=list)
    odcl_metadata: Dict[str, Any] = Field(default_factory=dict)

    quality: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)

    def add_medallion_layer(self, layer: MedallionLayer) -> None:
        # medallion_layers is a set; keep first-seen order
        if layer not in self.medallion_layers:
            self.medallion_layers.append(layer)

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def ordered_columns(self) -> List[Column]:
        return sorted(self.columns, key=lambda c: c.column_order)

    def top_level_columns(self) -> List[Column]:
        return [c for c in self.ordered_columns() if not c.is_nested]

    def child_columns(self, parent: str) -> List[Column]:
        """Direct children of `parent` (one path segment deeper)."""
        prefix = parent + "."
        return [
            c
            for c in self.ordered_columns()
            if c.name.startswith(prefix) and "." not in c.name[len(prefix) :]
        ]

    def validate_pattern_exclusivity(self) -> List[Diagnostic]:
        if self.scd_pattern is not None and self.data_vault_classification is not None:
            return [
                Diagnostic.soft(
                    "SCD pattern and Data Vault classification are mutually exclusive"
                )
            ]
        return []


class DataModel(BaseModel):
    """A named collection of tables, the unit handed to model-level exports."""

    id: UUID = Field(default_factory=uuid4)
    name: str = "model"
    tables: List[Table] = Field(default_factory=list)

    def select_tables(self, table_ids: Optional[Iterable[UUID | str]] = None) -> List[Table]:
        """Return the tables whose id is in `table_ids` (all tables when None)."""
        if table_ids is None:
            return list(self.tables)
        wanted = {str(t) for t in table_ids}
        return [t for t in self.tables if str(t.id) in wanted]
