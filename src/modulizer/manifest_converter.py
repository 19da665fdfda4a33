"""
Package Manifest Converter

Generates the package.json of a converted package from its bower.json,
optionally merged into an existing package.json.
"""

import logging
from typing import Any, Dict, List, Optional

from .dependency_map import DependencyMap
from .shared.errors import DiagnosticReporter
from .urls.util import replace_html_extension
from .utils.config import (
    HTML_EXTENSION,
    PACKAGE_JSON_RESOLUTIONS,
    POLYMER_LICENSE_SPDX,
    POLYMER_LICENSE_URL_FRAGMENT,
)

logger = logging.getLogger(__name__)


def _single(value: Any) -> Optional[str]:
    """A string, or the only element of a one-element list; None otherwise."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and len(value) == 1 and isinstance(value[0], str):
        return value[0]
    return None


def _npm_authors(bower_json: Dict[str, Any]) -> List[Any]:
    # Some packages use `author` even though bower.json only specifies `authors`.
    bower_authors = bower_json.get("authors") or bower_json.get("author") or []
    if isinstance(bower_authors, (str, dict)):
        bower_authors = [bower_authors]
    authors: List[Any] = []
    for author in bower_authors:
        if isinstance(author, str):
            authors.append(author)
        else:
            npm_author = {
                "name": author.get("name"),
                "email": author.get("email"),
                "url": author.get("homepage"),
            }
            authors.append({k: v for k, v in npm_author.items() if v is not None})
    return authors


def _mapped_dependencies(
    bower_dependencies: Dict[str, Any],
    dependency_map: DependencyMap,
    existing: Dict[str, str],
) -> Dict[str, str]:
    dependencies = dict(existing)
    for bower_name in bower_dependencies or {}:
        entry = dependency_map.lookup(bower_name)
        if entry is not None:
            dependencies[entry.npm] = entry.semver
    return dependencies


def generate_package_json(
    bower_json: Dict[str, Any],
    name: str,
    version: str,
    dependency_map: DependencyMap,
    reporter: Optional[DiagnosticReporter] = None,
    existing: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    package.json contents for a converted package.

    Values of an existing package.json win over ones derived from bower.json,
    except that name, version and flat are always set, `private` is dropped
    and dependencies, devDependencies and resolutions are merged with the
    generated entries winning.

    A bower.json with several mains or several licenses yields no value for
    that field and a W0501 warning.
    """
    reporter = reporter if reporter is not None else DiagnosticReporter()
    bower_name = bower_json.get("name", name)
    existing = dict(existing or {})

    package_json: Dict[str, Any] = {
        "description": bower_json.get("description"),
        "keywords": bower_json.get("keywords"),
        "repository": bower_json.get("repository"),
        "homepage": bower_json.get("homepage"),
    }
    package_json.update(existing)
    package_json.update({"name": name, "version": version, "flat": True})
    package_json.pop("private", None)

    resolutions = dict(package_json.get("resolutions") or {})
    resolutions.update(PACKAGE_JSON_RESOLUTIONS)
    package_json["resolutions"] = resolutions

    if not package_json.get("main"):
        bower_main = bower_json.get("main")
        main = _single(bower_main)
        if isinstance(bower_main, list) and len(bower_main) > 1:
            reporter.report_warning(
                f"{bower_name}: Found multiple mains in bower.json, but package.json must have only one.",
                code="W0501",
            )
        if main and main.endswith(HTML_EXTENSION):
            package_json["main"] = replace_html_extension(main)
        else:
            reporter.report_warning(
                f"{bower_name}: Could not automatically find main. Please manually set your package.json main.",
                code="W0501",
            )

    if not package_json.get("author") and not package_json.get("contributors"):
        authors = _npm_authors(bower_json)
        if len(authors) == 1:
            package_json["author"] = authors[0]
        elif len(authors) > 1:
            package_json["contributors"] = authors

    if not package_json.get("license"):
        bower_license = bower_json.get("license")
        license = _single(bower_license)
        if isinstance(bower_license, list) and len(bower_license) > 1:
            reporter.report_warning(
                f"{bower_name}: Found multiple licenses in bower.json, but package.json must have only one.",
                code="W0501",
            )
        if license:
            if POLYMER_LICENSE_URL_FRAGMENT in license:
                license = POLYMER_LICENSE_SPDX
            package_json["license"] = license
        else:
            reporter.report_warning(
                f"{bower_name}: Could not automatically find appropriate license. "
                f"Please manually set your package.json license.",
                code="W0501",
            )

    package_json["dependencies"] = _mapped_dependencies(
        bower_json.get("dependencies"), dependency_map, package_json.get("dependencies") or {},
    )
    package_json["devDependencies"] = _mapped_dependencies(
        bower_json.get("devDependencies"), dependency_map, package_json.get("devDependencies") or {},
    )

    logger.debug(
        f"package.json for {name}: {len(package_json['dependencies'])} dependencies, "
        f"{len(package_json['devDependencies'])} devDependencies"
    )
    return {k: v for k, v in package_json.items() if v is not None}
