"""
Configuration constants shared across the converter
"""

import os
import tempfile

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "modulizer_html_parser.cache")

# Dependency roots
LEGACY_DEPENDENCY_DIR = "bower_components"
MODULE_DEPENDENCY_DIR = "node_modules"

# File extensions
HTML_EXTENSION = ".html"
JS_EXTENSION = ".js"

# Legacy entrypoints that are replaced by hand-maintained modules
ENTRYPOINT_REMAPS = {
    "shadycss/apply-shim.html": "shadycss/entrypoints/apply-shim.js",
    "shadycss/custom-style-interface.html": "shadycss/entrypoints/custom-style-interface.js",
}
PROTECTED_ENTRYPOINTS = (
    "shadycss/entrypoints/apply-shim.js",
    "shadycss/entrypoints/custom-style-interface.js",
)

# Namespaces tracked when the caller does not provide any
DEFAULT_NAMESPACES = ("Polymer",)

# Dotted paths that vanish from converted code
DEFAULT_REFERENCE_EXCLUDES = (
    "Polymer.DomModule",
    "Polymer.Settings",
    "Polymer.log",
    "Polymer.rootPath",
    "Polymer.sanitizeDOMValue",
    "Polymer.StyleGather",
)
DEFAULT_REFERENCE_REWRITES = {
    "document.currentScript.ownerDocument": "window.document",
}

# Directories whose HTML documents stay HTML by default
NON_MODULE_DIRECTORIES = ("demo/", "test/", "tests/")
NON_MODULE_DOCUMENTS = ("index.html",)

# Elements never re-created by the DOM insertion code
GENERATED_ELEMENT_BLACKLIST = frozenset(["base", "link", "meta", "script"])

# HTML elements that never have children
VOID_ELEMENTS = frozenset([
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
])

# Script MIME types that legacy browsers execute as classic scripts
LEGACY_JAVASCRIPT_TYPES = frozenset([
    "",
    "application/ecmascript",
    "application/javascript",
    "application/x-ecmascript",
    "application/x-javascript",
    "text/ecmascript",
    "text/javascript",
    "text/javascript1.0",
    "text/javascript1.1",
    "text/javascript1.2",
    "text/javascript1.3",
    "text/javascript1.4",
    "text/javascript1.5",
    "text/jscript",
    "text/livescript",
    "text/x-ecmascript",
    "text/x-javascript",
])

# Globals whose direct assignment keeps an inline script out of module conversion
GLOBAL_SETTINGS_OBJECTS = frozenset(["Polymer", "Polymer.Settings", "ShadyDOM"])

# Member accesses that change meaning once code runs as a module
DANGEROUS_REFERENCES = {
    "document.currentScript": "document.currentScript is always `null` in an ES6 module.",
}

# Events and helpers that only exist to wait on the HTML imports polyfill
POLYFILL_READY_EVENTS = frozenset(["WebComponentsReady", "HTMLImportsLoaded"])

# Package manifest constants
PACKAGE_JSON_RESOLUTIONS = {
    "inherits": "2.0.3",
    "samsam": "1.1.3",
    "supports-color": "3.1.2",
    "type-detect": "1.0.0",
}
POLYMER_LICENSE_URL_FRAGMENT = "polymer.github.io/LICENSE"
POLYMER_LICENSE_SPDX = "BSD-3-Clause"

# Name of the container element variable in generated DOM insertion code
DOCUMENT_CONTAINER_NAME = "$_documentContainer"

# Comment placed before the first style module generated for an HTML document
STYLE_MODULE_APOLOGY = """<!-- FIXME(modulizer):
        These imperative modules that innerHTML your HTML are
        a hacky way to be sure that any mixins in included style
        modules are ready before any elements that reference them are
        instantiated, otherwise the CSS @apply mixin polyfill won't be
        able to expand the underlying CSS custom properties.
        -->
    """
