from __future__ import annotations

from .odcs import export_odcs_yaml
from .registry import ExporterRegistry, export_model, get_exporter_registry

__all__ = [
    "ExporterRegistry",
    "export_model",
    "export_odcs_yaml",
    "get_exporter_registry",
]
