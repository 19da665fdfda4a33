"""
Url resolution for the two supported directory layouts
"""

from .resolver import UrlResolver, PackageUrlResolver, WorkspaceUrlResolver
from .util import get_relative_url, replace_html_extension

__all__ = [
    "UrlResolver",
    "PackageUrlResolver",
    "WorkspaceUrlResolver",
    "get_relative_url",
    "replace_html_extension",
]
