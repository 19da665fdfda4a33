"""
Tests for the offset-preserving HTML parser.
"""

import pytest
from modulizer.frontend.html_parser import HtmlComment, HtmlElement, HtmlText, serialize_start_tag


class TestHtmlTree:
    """Tree shape and source offsets."""

    def test_offsets_slice_back_to_source(self, html_parser):
        source = '<dom-module id="x-foo"><template><div>hi</div></template></dom-module>'
        document = html_parser.parse(source)
        dom_module = document.find_first("dom-module")
        assert document.source_of(dom_module) == source
        template = document.find_first("template")
        assert document.inner_source(template) == "<div>hi</div>"
        assert dom_module.get_attribute("id") == "x-foo"

    def test_void_elements_have_no_children(self, html_parser):
        document = html_parser.parse('<link rel="import" href="a.html"><div>x</div>')
        link, div = document.children
        assert link.tag == "link" and not link.children
        assert div.tag == "div" and div.parent is None, "div must not nest inside link"

    def test_script_contents_are_raw(self, html_parser):
        source = '<script>if (a < b) { x = "</div>"; }</script>'
        document = html_parser.parse(source)
        script = document.find_first("script")
        assert document.inner_source(script) == 'if (a < b) { x = "</div>"; }'
        assert len(script.children) == 1 and isinstance(script.children[0], HtmlText)

    def test_unclosed_and_stray_tags(self, html_parser):
        document = html_parser.parse("<div><p>one</span></div>after")
        div = document.find_first("div")
        assert [c.tag for c in div.element_children()] == ["p"]
        assert isinstance(document.children[-1], HtmlText)
        assert document.children[-1].text == "after"

    def test_comments_and_doctype(self, html_parser):
        document = html_parser.parse("<!doctype html><!-- @license MIT --><html></html>")
        comments = document.comments()
        assert len(comments) == 1 and isinstance(comments[0], HtmlComment)
        assert comments[0].data == " @license MIT "

    def test_attributes(self, html_parser):
        document = html_parser.parse("<input disabled value='a &amp; b' data-x=1 TYPE=\"text\">")
        element = document.find_first("input")
        assert element.get_attribute("disabled") == ""
        assert element.get_attribute("value") == "a & b"
        assert element.get_attribute("data-x") == "1"
        assert element.get_attribute("type") == "text"
        assert element.get_attribute("missing") is None

    def test_ancestors(self, html_parser):
        document = html_parser.parse("<template><div><script>x</script></div></template>")
        script = document.find_first("script")
        assert script.has_ancestor("template")
        assert [a.tag for a in script.iter_ancestors()] == ["div", "template"]

    def test_empty_document(self, html_parser):
        assert html_parser.parse("").children == []


class TestDocumentQueries:
    """Content flattening and serialization helpers."""

    def test_content_elements_flatten_wrappers(self, html_parser):
        source = "<html><head><style>a{}</style></head><body><div></div><p></p></body></html>"
        document = html_parser.parse(source)
        assert [e.tag for e in document.content_elements()] == ["style", "div", "p"]

    def test_serialize_without(self, html_parser):
        source = "<div><script>x</script><span>keep</span></div>"
        document = html_parser.parse(source)
        div = document.find_first("div")
        text = document.serialize_without(div, lambda e: e.tag == "script")
        assert text == "<div><span>keep</span></div>"

    def test_serialize_start_tag(self):
        tag = serialize_start_tag("script", [("type", "module"), ("src", 'a"b.js'), ("async", None)])
        assert tag == '<script type="module" src="a&quot;b.js" async>'
