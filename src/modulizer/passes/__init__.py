"""
Program passes, in pipeline order
"""

from .base import BasePass, ConversionContext, JsProgram, PassManager
from .toplevel_this import RewriteToplevelThisPass
from .remove_wrappers import RemoveWrappersPass
from .inline_templates import InlineTemplatesPass
from .collect_references import CollectReferencesPass
from .namespace_exports import NamespaceExportsPass
from .namespace_this import NamespaceThisPass
from .rewrite_references import RewriteReferencesPass
from .dom_insertion import DomInsertionPass
from .imports import ImportsPass
from .dangerous_references import DangerousReferencesPass
from .print_program import PrintPass

MODULE_PASSES = [
    RewriteToplevelThisPass,
    RemoveWrappersPass,
    InlineTemplatesPass,
    CollectReferencesPass,
    NamespaceExportsPass,
    NamespaceThisPass,
    RewriteReferencesPass,
    DomInsertionPass,
    ImportsPass,
    DangerousReferencesPass,
    PrintPass,
]

INLINE_SCRIPT_PASSES = [
    RewriteToplevelThisPass,
    RemoveWrappersPass,
    CollectReferencesPass,
    NamespaceExportsPass,
    NamespaceThisPass,
    RewriteReferencesPass,
    ImportsPass,
    DangerousReferencesPass,
    PrintPass,
]

SCAN_PASSES = [
    RewriteToplevelThisPass,
    RemoveWrappersPass,
    InlineTemplatesPass,
    NamespaceExportsPass,
]

__all__ = [
    "BasePass",
    "ConversionContext",
    "JsProgram",
    "PassManager",
    "MODULE_PASSES",
    "INLINE_SCRIPT_PASSES",
    "SCAN_PASSES",
    "RewriteToplevelThisPass",
    "RemoveWrappersPass",
    "InlineTemplatesPass",
    "CollectReferencesPass",
    "NamespaceExportsPass",
    "NamespaceThisPass",
    "RewriteReferencesPass",
    "DomInsertionPass",
    "ImportsPass",
    "DangerousReferencesPass",
    "PrintPass",
]
