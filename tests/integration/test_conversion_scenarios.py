"""
End-to-end conversions of small in-memory packages.

Each test builds a package from source strings, runs the analyze, scan and
convert phases over it and checks the emitted files.
"""

import pytest
from tests.test_utils import convert_sources

POLYMER_DEPENDENCY = {
    "bower_components/polymer/polymer.html": "<script>\n  Polymer.Element = class {};\n</script>\n",
}

UTIL_HTML = (
    "<script>\n"
    "  Polymer.Util = Polymer.Util || {};\n"
    "  Polymer.Util.format = function(x) { return x; };\n"
    "</script>\n"
)

ELEMENT_SCRIPT = (
    "  <script>\n"
    "    class MyEl extends Polymer.Element {\n"
    "      static get is() { return 'my-el'; }\n"
    "    }\n"
    "    customElements.define(MyEl.is, MyEl);\n"
    "  </script>\n"
)


@pytest.mark.integration
class TestNamespaceReferences:
    """Exports of one document become named imports in another."""

    def test_reference_becomes_named_import(self):
        run = convert_sources({
            "util.html": UTIL_HTML,
            "b.html": '<link rel="import" href="util.html">\n<script>\n  Polymer.Util.format(x);\n</script>\n',
        })
        util = run.module("util.js")
        assert "export const format = function(x) { return x; };" in util
        assert "||" not in util

        b = run.module("b.js")
        assert b.startswith("import { format } from './util.js';\n\n")
        assert "format(x);" in b
        assert "Polymer" not in b
        assert run.results["b.html"] is None, "converted originals are deleted"
        assert run.results["util.html"] is None

    def test_colliding_exports_are_aliased(self):
        run = convert_sources({
            "a.html": "<script>\n  Polymer.A = Polymer.A || {};\n  Polymer.A.util = function() {};\n</script>\n",
            "b.html": "<script>\n  Polymer.B = Polymer.B || {};\n  Polymer.B.util = function() {};\n</script>\n",
            "c.html": (
                '<link rel="import" href="a.html">\n<link rel="import" href="b.html">\n'
                "<script>\n  Polymer.A.util();\n  Polymer.B.util();\n</script>\n"
            ),
        })
        c = run.module("c.js")
        assert "import { util } from './a.js';\nimport { util as util$0 } from './b.js';" in c
        assert "util();\n  util$0();" in c

    def test_markup_imports_without_references(self):
        run = convert_sources({
            "util.html": UTIL_HTML,
            "side.html": '<link rel="import" href="util.html">\n<script>\n  go();\n</script>\n',
        })
        assert run.module("side.js").startswith("import './util.js';\n")

    def test_member_written_through_this_is_reassignable(self):
        run = convert_sources({
            "counter.html": (
                "<script>\n  /** @namespace */\n  Polymer.Counter = {\n    count: 0,\n"
                "    bump: function() { this.count = this.count + 1; }\n  };\n</script>\n"
            ),
        })
        module = run.module("counter.js")
        assert "export let count = 0;" in module
        assert "export function bump() { count = count + 1; }" in module

    def test_excluded_namespace_members_are_not_exported(self):
        run = convert_sources({
            "a.html": "<script>\n  Polymer.Settings.x = 1;\n  Polymer.Good = 1;\n</script>\n",
        })
        module = run.module("a.js")
        assert "Polymer.Settings.x = 1;" in module
        assert "export const x" not in module
        assert "Polymer.Settings.x" not in run.project.registry

    def test_failed_document_does_not_stop_the_run(self):
        run = convert_sources({
            "bad.html": "<script>var = ;</script>\n",
            "good.html": "<script>Polymer.Good = 1;</script>\n",
        })
        assert "export const Good = 1;" in run.module("good.js")
        assert "bad.js" not in run.results
        assert "E0001" in {d.code for d in run.reporter.errors}


@pytest.mark.integration
class TestProjectConverter:
    """Phases run on a thread pool and conversions are cached."""

    SOURCES = {
        "util.html": UTIL_HTML,
        "b.html": '<link rel="import" href="util.html">\n<script>\n  Polymer.Util.format(x);\n</script>\n',
        "c.html": '<link rel="import" href="util.html">\n<script>\n  Polymer.C = Polymer.Util.format;\n</script>\n',
        "demo/index.html": '<link rel="import" href="../c.html">\n',
    }

    def test_thread_pool_matches_inline_run(self):
        inline = convert_sources(self.SOURCES)
        pooled = convert_sources(self.SOURCES, workers=4)
        assert pooled.project.workers == 4
        assert pooled.results == inline.results
        assert "export const C = format;" in pooled.module("c.js")
        assert not pooled.reporter.has_errors()

    def test_second_conversion_returns_cached_result(self):
        run = convert_sources(self.SOURCES)
        first = run.project.conversion_results["b.html"]
        assert run.project.convert("b.html") is first
        assert run.project.get_results() == run.results

    def test_out_of_scope_document_is_not_converted(self):
        run = convert_sources(self.SOURCES)
        assert run.project.convert("missing.html") is None


@pytest.mark.integration
class TestElementTemplates:
    """dom-module templates end up in the element or in generated DOM code."""

    def test_plain_dom_module_is_inlined(self):
        run = convert_sources({
            **POLYMER_DEPENDENCY,
            "my-el.html": (
                '<link rel="import" href="../polymer/polymer.html">\n'
                '<dom-module id="my-el">\n  <template>\n    <div>[[x]]</div>\n  </template>\n'
                + ELEMENT_SCRIPT + "</dom-module>\n"
            ),
        })
        module = run.module("my-el.js")
        assert module.startswith("import { Element } from '../@polymer/polymer/polymer.js';\n")
        assert "class MyEl extends Element {" in module
        assert "static get template() {\n    return `\n    <div>[[x]]</div>\n`;\n  }" in module
        assert "dom-module" not in module
        assert "$_documentContainer" not in module

    def test_dom_module_with_extra_attributes_is_inserted(self):
        run = convert_sources({
            **POLYMER_DEPENDENCY,
            "my-el.html": (
                '<link rel="import" href="../polymer/polymer.html">\n'
                '<dom-module id="my-el" restamp>\n  <template>\n    <div>[[x]]</div>\n  </template>\n'
                + ELEMENT_SCRIPT + "</dom-module>\n"
            ),
        })
        module = run.module("my-el.js")
        assert "static get template()" not in module
        assert "const $_documentContainer = document.createElement('div');" in module
        assert "$_documentContainer.setAttribute('style', 'display: none;');" in module
        assert '<dom-module id="my-el" restamp>' in module
        assert "document.head.appendChild($_documentContainer);" in module
        assert "customElements.define" not in module.split("innerHTML")[1].split("`;")[0], \
            "scripts are not re-created as markup"

    def test_template_tag_option(self):
        run = convert_sources(
            {
                **POLYMER_DEPENDENCY,
                "my-el.html": (
                    '<link rel="import" href="../polymer/polymer.html">\n'
                    '<dom-module id="my-el">\n  <template><b>x</b></template>\n'
                    + ELEMENT_SCRIPT + "</dom-module>\n"
                ),
            },
            template_tag="html",
        )
        assert "return html`\n<b>x</b>\n`;" in run.module("my-el.js")

    def test_style_markup_is_recreated(self):
        run = convert_sources({
            "theme.html": "<custom-style>\n  <style>html { --x: red; }</style>\n</custom-style>\n",
        })
        module = run.module("theme.js")
        assert "<custom-style>" in module
        assert "document.head.appendChild($_documentContainer);" in module


@pytest.mark.integration
class TestPatchedHtml:
    """Documents that stay HTML only get the edits they need."""

    SOURCES = {
        "util.html": UTIL_HTML,
        "my-el.html": "<script>\n  Polymer.MyEl = class {};\n</script>\n",
        "demo/index.html": (
            "<html><head>\n"
            "<script>window.Polymer = {rootPath: '/'};</script>\n"
            '<link rel="import" href="../my-el.html">\n'
            "</head><body>\n"
            "<script>\n  Polymer.Util.format('x');\n</script>\n"
            "<script>\n  console.log('plain');\n</script>\n"
            "</body></html>\n"
        ),
    }

    def test_demo_document(self):
        run = convert_sources(self.SOURCES)
        html = run.module("demo/index.html")
        assert '<script type="module" src="../my-el.js"></script>' in html
        assert "<script>window.Polymer = {rootPath: '/'};</script>" in html
        assert "<script type=\"module\">\nimport { format } from '../util.js';\n\n  format('x');\n</script>" in html
        assert "<script>\n  console.log('plain');\n</script>" in html
        assert "link rel" not in html

    def test_demo_document_is_kept(self):
        run = convert_sources(self.SOURCES)
        assert run.results.get("demo/index.js") is None
        assert "demo/index.html" in run.results


@pytest.mark.integration
class TestDiagnosticLocations:
    """Warnings about inline scripts point into the HTML document."""

    def test_unresolved_reference_location(self):
        run = convert_sources({
            "util.html": UTIL_HTML,
            "demo/index.html": (
                "<html><head>\n"
                '<link rel="import" href="../util.html">\n'
                "</head><body>\n"
                "<script>\n  Polymer.Util.format(Polymer.Missing);\n</script>\n"
                "</body></html>\n"
            ),
        })
        [warning] = [d for d in run.reporter.warnings if d.code == "W0301"]
        assert warning.location.file == "demo/index.html"
        assert (warning.location.line, warning.location.column) == (5, 23)
        assert "5 |   Polymer.Util.format(Polymer.Missing);" in run.reporter.format_all(color=False)

    def test_parse_error_line_counts_from_document_start(self):
        run = convert_sources({
            "demo/index.html": "<html><body>\n<p>x</p>\n<script>\n  var = ;\n</script>\n</body></html>\n",
        })
        lines = {d.code: d.location.line for d in run.reporter.warnings if d.code in ("W0201", "W0203")}
        assert lines == {"W0201": 4, "W0203": 4}
