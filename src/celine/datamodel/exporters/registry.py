# datamodel/exporters/registry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import UUID

from celine.datamodel.core.errors import DataModelError
from celine.datamodel.schemas.table import DataModel

logger = logging.getLogger(__name__)

ExportFn = Callable[..., Any]


@dataclass
class ExporterRegistry:
    """Export format name -> model-level export function."""

    exporters: Dict[str, ExportFn]

    def get(self, name: str) -> Optional[ExportFn]:
        return self.exporters.get(name.strip().lower())

    def register(self, name: str, fn: ExportFn) -> None:
        key = name.strip().lower()
        if key in self.exporters:
            raise ValueError(f"Duplicate exporter name: {name}")
        self.exporters[key] = fn

    def names(self) -> List[str]:
        return sorted(self.exporters)

    def export(
        self,
        name: str,
        model: DataModel,
        table_ids: Optional[Iterable[UUID | str]] = None,
        **options: Any,
    ) -> Any:
        fn = self.get(name)
        if fn is None:
            raise DataModelError(
                f"Unknown export format '{name}' (available: {', '.join(self.names())})"
            )
        logger.debug("Exporting model %s as %s", model.name, name)
        return fn(model, table_ids, **options)


_registry: ExporterRegistry | None = None


def get_exporter_registry() -> ExporterRegistry:
    global _registry
    if _registry is not None:
        return _registry

    from celine.datamodel.exporters import avro, json_schema, odcs, protobuf, sql

    reg = ExporterRegistry(exporters={})
    reg.register("sql", sql.export_model)
    reg.register("json_schema", json_schema.export_model)
    reg.register("avro", avro.export_model)
    reg.register("protobuf", protobuf.export_model)
    reg.register("odcs", odcs.export_model)

    _registry = reg
    return reg


def export_model(
    name: str,
    model: DataModel,
    table_ids: Optional[Iterable[UUID | str]] = None,
    **options: Any,
) -> Any:
    """Export `model` in format `name`; raises DataModelError for an unknown format."""
    return get_exporter_registry().export(name, model, table_ids, **options)
