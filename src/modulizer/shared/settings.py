"""
Conversion settings

Supplied once per run and read-only afterwards.
"""

import fnmatch
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from ..utils.config import (
    DEFAULT_NAMESPACES,
    DEFAULT_REFERENCE_EXCLUDES,
    DEFAULT_REFERENCE_REWRITES,
    HTML_EXTENSION,
    LEGACY_DEPENDENCY_DIR,
    MODULE_DEPENDENCY_DIR,
    NON_MODULE_DIRECTORIES,
    NON_MODULE_DOCUMENTS,
)

logger = logging.getLogger(__name__)


class ImportStyle(Enum):
    """How import specifiers for other packages are written."""
    NAME = "name"
    PATH = "path"


class PackageType(Enum):
    """An element package is installed next to its dependencies; an application owns them."""
    ELEMENT = "element"
    APPLICATION = "application"


class DeclarationKind(Enum):
    """How a top-level assignment to a namespace path is converted."""
    NAMESPACE = "namespace"
    VALUE = "value"
    IGNORE = "ignore"


@dataclass(frozen=True)
class ConversionSettings:
    """
    Per-run conversion settings.

    namespaces: root identifiers (or dotted paths) of tracked namespace objects
    reference_excludes: dotted paths replaced by `undefined`
    reference_rewrites: dotted path → replacement expression text
    modules: original paths converted to modules; all others are patched HTML
    excluded_documents: original paths never converted and never imported
    declaration_overrides: dotted path → DeclarationKind for ambiguous assignments
    """
    namespaces: FrozenSet[str] = frozenset(DEFAULT_NAMESPACES)
    reference_excludes: FrozenSet[str] = frozenset()
    reference_rewrites: Mapping[str, str] = field(default_factory=dict)
    modules: FrozenSet[str] = frozenset()
    excluded_documents: FrozenSet[str] = frozenset()
    import_style: ImportStyle = ImportStyle.PATH
    add_import_path: bool = False
    package_name: str = ""
    package_type: PackageType = PackageType.ELEMENT
    template_tag: Optional[str] = None
    declaration_overrides: Mapping[str, DeclarationKind] = field(default_factory=dict)
    legacy_dependency_dir: str = LEGACY_DEPENDENCY_DIR
    module_dependency_dir: str = MODULE_DEPENDENCY_DIR

    def is_module(self, original_url: str) -> bool:
        return original_url in self.modules

    def is_excluded(self, original_url: str) -> bool:
        return original_url in self.excluded_documents

    def root_namespaces(self) -> FrozenSet[str]:
        """First segment of every tracked namespace."""
        return frozenset(ns.split(".")[0] for ns in self.namespaces)


def is_default_module_document(original_url: str) -> bool:
    """True for in-package HTML documents that become modules by default."""
    if not original_url.endswith(HTML_EXTENSION):
        return False
    if original_url in NON_MODULE_DOCUMENTS:
        return False
    return not any(original_url.startswith(prefix) for prefix in NON_MODULE_DIRECTORIES)


def create_default_conversion_settings(
    document_urls: Iterable[str],
    package_name: str = "",
    package_type: PackageType = PackageType.ELEMENT,
    namespaces: Optional[Iterable[str]] = None,
    excludes: Iterable[str] = (),
    reference_excludes: Optional[Iterable[str]] = None,
    reference_rewrites: Optional[Dict[str, str]] = None,
    import_style: ImportStyle = ImportStyle.PATH,
    add_import_path: bool = False,
    template_tag: Optional[str] = None,
    declaration_overrides: Optional[Dict[str, DeclarationKind]] = None,
) -> ConversionSettings:
    """
    Build settings for converting one package.

    document_urls are the package's own documents (no dependency paths);
    excludes are glob patterns matched against them.
    """
    document_urls = list(document_urls)
    exclude_patterns = list(excludes)
    excluded = frozenset(
        url for url in document_urls
        if any(fnmatch.fnmatch(url, pattern) for pattern in exclude_patterns)
    )
    modules = frozenset(
        url for url in document_urls
        if url not in excluded and is_default_module_document(url)
    )
    logger.debug(f"Default settings: {len(modules)} module documents, {len(excluded)} excluded")
    return ConversionSettings(
        namespaces=frozenset(namespaces if namespaces is not None else DEFAULT_NAMESPACES),
        reference_excludes=frozenset(
            reference_excludes if reference_excludes is not None else DEFAULT_REFERENCE_EXCLUDES
        ),
        reference_rewrites=dict(
            reference_rewrites if reference_rewrites is not None else DEFAULT_REFERENCE_REWRITES
        ),
        modules=modules,
        excluded_documents=excluded,
        import_style=import_style,
        add_import_path=add_import_path,
        package_name=package_name,
        package_type=package_type,
        template_tag=template_tag,
        declaration_overrides=dict(declaration_overrides or {}),
    )
