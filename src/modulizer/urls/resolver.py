"""
Url Resolution

Maps original document urls to converted urls and computes import specifiers
between converted urls. Two interchangeable directory layouts are supported:

- package layout: one package, its dependencies installed under
  `bower_components/` (converted: `./node_modules/`)
- workspace layout: many packages checked out side by side, urls start with
  the package directory name

Resolvers are pure given their constructor arguments and can be shared.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..dependency_map import DependencyMap
from ..shared.settings import ImportStyle, PackageType
from ..utils.config import LEGACY_DEPENDENCY_DIR, MODULE_DEPENDENCY_DIR
from .util import (
    apply_entrypoint_remaps,
    get_relative_url,
    replace_html_extension,
    strip_root_anchor,
)

logger = logging.getLogger(__name__)


class UrlResolver(ABC):
    """Common interface of the layout strategies."""

    def __init__(self, dependency_map: DependencyMap):
        self.dependency_map = dependency_map

    @abstractmethod
    def convert_url(self, original_url: str) -> str:
        """Converted url of a file, keeping its extension."""
        raise NotImplementedError

    @abstractmethod
    def is_internal(self, from_url: str, to_url: str) -> bool:
        """True when two converted urls belong to the same package."""
        raise NotImplementedError

    @abstractmethod
    def path_import_specifier(self, from_url: str, to_url: str) -> str:
        """Relative specifier for importing to_url from from_url."""
        raise NotImplementedError

    @abstractmethod
    def name_import_specifier(self, to_url: str) -> str:
        """Bare (package name) specifier for an external converted url."""
        raise NotImplementedError

    def to_converted_path(self, original_url: str) -> str:
        """
        Converted url of a document.

        Applies the dependency rewrite, the entrypoint remaps and the
        `.html` → `.js` rename.
        """
        return replace_html_extension(apply_entrypoint_remaps(self.convert_url(original_url)))

    def convert_script_url(self, original_url: str) -> str:
        return self.convert_url(original_url)

    def format_import_url(
        self,
        from_url: str,
        to_url: str,
        import_style: ImportStyle,
        original_href: Optional[str] = None,
    ) -> str:
        """
        Specifier to write in an import declaration.

        Absolute hrefs stay absolute; imports within the package and the
        PATH style use relative paths; everything else uses the package name.
        """
        if original_href and original_href.startswith("/"):
            return "/" + strip_root_anchor(to_url)
        if import_style is ImportStyle.PATH or self.is_internal(from_url, to_url):
            return self.path_import_specifier(from_url, to_url)
        return self.name_import_specifier(to_url)

    def converted_file_path(self, original_url: str) -> str:
        """Path (relative to the output root) the module for original_url is written to."""
        return replace_html_extension(original_url)


class PackageUrlResolver(UrlResolver):
    """
    Package layout.

    Examples:
        to_converted_path('foo/foo.html') → './foo/foo.js'
        to_converted_path('bower_components/polymer/polymer.html')
            → './node_modules/@polymer/polymer/polymer.js'
    """

    def __init__(
        self,
        package_name: str,
        dependency_map: DependencyMap,
        package_type: PackageType = PackageType.ELEMENT,
        legacy_dependency_dir: str = LEGACY_DEPENDENCY_DIR,
        module_dependency_dir: str = MODULE_DEPENDENCY_DIR,
    ):
        super().__init__(dependency_map)
        self.package_name = package_name
        self.package_type = package_type
        self.legacy_dependency_dir = legacy_dependency_dir
        self.module_dependency_dir = module_dependency_dir
        self._dependency_dir_re = re.compile(
            r"(^|/)(%s|%s)/" % (re.escape(legacy_dependency_dir), re.escape(module_dependency_dir))
        )

    def is_url_internal_to_package(self, url: str) -> bool:
        return self._dependency_dir_re.search(url) is None

    def convert_url(self, original_url: str) -> str:
        if self.is_url_internal_to_package(original_url):
            return "./" + original_url
        pieces = original_url.replace(
            self.legacy_dependency_dir + "/", self.module_dependency_dir + "/", 1
        ).split("/")
        entry = self.dependency_map.lookup(pieces[1])
        if entry is not None:
            pieces[1] = entry.npm
        converted = "./" + "/".join(pieces)
        logger.debug(f"PackageUrlResolver: {original_url} → {converted}")
        return converted

    def is_internal(self, from_url: str, to_url: str) -> bool:
        prefix = "./" + self.module_dependency_dir
        return from_url.startswith(prefix) == to_url.startswith(prefix)

    def path_import_specifier(self, from_url: str, to_url: str) -> str:
        import_url = get_relative_url(from_url, to_url)
        is_scoped = "/" in self.package_name
        from_local_file = self.is_url_internal_to_package(from_url)
        to_external_file = not self.is_url_internal_to_package(to_url)

        if from_local_file and self.package_type is PackageType.ELEMENT:
            # Dependencies of an element are installed as its siblings.
            nested_prefix = "./" + self.module_dependency_dir + "/"
            if import_url.startswith(nested_prefix):
                import_url = "../" + import_url[len(nested_prefix):]
            else:
                import_url = import_url.replace(self.module_dependency_dir, "..", 1)
            if is_scoped and to_external_file:
                if import_url.startswith("./"):
                    import_url = "../" + import_url[2:]
                else:
                    import_url = "../" + import_url
        return import_url

    def name_import_specifier(self, to_url: str) -> str:
        prefix = "./" + self.module_dependency_dir + "/"
        if to_url.startswith(prefix):
            return to_url[len(prefix):]
        return strip_root_anchor(to_url)


class WorkspaceUrlResolver(UrlResolver):
    """
    Workspace layout.

    The first segment of an original url names the package directory; the
    converted url replaces it with the package's new name so relative imports
    between packages match an installed dependency tree.

    Examples:
        to_converted_path('paper-button/paper-button.html')
            → './@polymer/paper-button/paper-button.js'
    """

    def __init__(
        self,
        dependency_map: DependencyMap,
        package_names: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            dependency_map: Legacy → new package names
            package_names: Directory name → new package name, taking
                           precedence over the dependency map
        """
        super().__init__(dependency_map)
        self.package_names = dict(package_names or {})

    def _new_package_name(self, directory: str) -> str:
        if directory in self.package_names:
            return self.package_names[directory]
        return self.dependency_map.npm_name(directory)

    @staticmethod
    def _package_of(converted_url: str) -> str:
        parts = strip_root_anchor(converted_url).split("/")
        if parts[0].startswith("@") and len(parts) > 1:
            return "/".join(parts[:2])
        return parts[0]

    def convert_url(self, original_url: str) -> str:
        pieces = original_url.split("/")
        pieces[0] = self._new_package_name(pieces[0])
        return "./" + "/".join(pieces)

    def is_internal(self, from_url: str, to_url: str) -> bool:
        return self._package_of(from_url) == self._package_of(to_url)

    def path_import_specifier(self, from_url: str, to_url: str) -> str:
        return get_relative_url(from_url, to_url)

    def name_import_specifier(self, to_url: str) -> str:
        return strip_root_anchor(to_url)
