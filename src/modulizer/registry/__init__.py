"""
Export registry and its persisted form
"""

from .export_registry import ExportRecord, ExportRegistry, ExportRegistryBuilder, NAMESPACE_EXPORT

__all__ = ["ExportRecord", "ExportRegistry", "ExportRegistryBuilder", "NAMESPACE_EXPORT"]
