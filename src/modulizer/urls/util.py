"""
Url helpers

Original urls are root-relative paths as found on disk
(`paper-button.html`, `bower_components/polymer/polymer.html`); converted
urls are anchored at the new package root (`./paper-button.js`).
"""

import posixpath

from ..shared.errors import UrlFormatError
from ..utils.config import ENTRYPOINT_REMAPS, HTML_EXTENSION, JS_EXTENSION, PROTECTED_ENTRYPOINTS


def replace_html_extension(url: str) -> str:
    """'foo/bar.html' → 'foo/bar.js'; other urls are returned unchanged."""
    if url.endswith(HTML_EXTENSION):
        return url[:-len(HTML_EXTENSION)] + JS_EXTENSION
    return url


def is_root_anchored(url: str) -> bool:
    return url.startswith("./")


def is_original_url_format(url: str) -> bool:
    """Original urls are plain relative paths: no './', '../' or '/' prefix."""
    return not (url.startswith("./") or url.startswith("../") or url.startswith("/"))


def apply_entrypoint_remaps(url: str) -> str:
    """Point legacy entrypoints at the hand-maintained modules that replace them."""
    for legacy_suffix, replacement in ENTRYPOINT_REMAPS.items():
        if url.endswith(legacy_suffix):
            return url[:-len(legacy_suffix)] + replacement
    return url


def is_protected_entrypoint(url: str) -> bool:
    return url.endswith(PROTECTED_ENTRYPOINTS)


def strip_root_anchor(url: str) -> str:
    return url[2:] if url.startswith("./") else url


def get_relative_url(from_url: str, to_url: str) -> str:
    """
    Relative import url from one converted url to another.

    Raises:
        UrlFormatError: unless both urls are anchored at the package root

    Examples:
        get_relative_url('./foo.js', './bar.js') → './bar.js'
        get_relative_url('./foo/foo.js', './bar.js') → '../bar.js'
        get_relative_url('./foo/foo.js', './bar/bar.js') → '../bar/bar.js'
    """
    if not is_root_anchored(from_url) or not is_root_anchored(to_url):
        raise UrlFormatError(
            f'paths relative to package root expected (actual: from="{from_url}", to="{to_url}")'
        )
    relative = posixpath.relpath(to_url, posixpath.dirname(from_url))
    if not relative.startswith(".") and not relative.startswith("/"):
        relative = "./" + relative
    return relative
