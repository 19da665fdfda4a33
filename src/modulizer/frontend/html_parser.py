"""
HTML Parser

Lark-based tolerant HTML parser. The grammar tokenizes markup in document
order; a stack-based builder turns the token stream into a tree. Every node
keeps exact character offsets into the original text, so any node can be
re-serialized by slicing and any edit can be expressed as an offset range.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

from lark import Lark, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken

from ..shared.errors import ModulizerError
from ..shared.source_location import SourceLocation
from ..utils.config import DEFAULT_PARSER_CACHE_FILE, VOID_ELEMENTS

logger = logging.getLogger(__name__)

_ATTRIBUTE_RE = re.compile(
    r"""\s+(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<uq>[^\s"'=<>`]+)))?"""
)


class HtmlParseError(ModulizerError):
    """Parse error with source location"""
    def __init__(self, message: str, source_file: str, location: Optional[SourceLocation] = None):
        super().__init__(message, location)
        self.source_file = source_file


# ---------------------------------------------------------------------------
# Tree nodes
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class HtmlNode:
    start: int
    end: int
    parent: Optional["HtmlElement"] = field(default=None, repr=False)


@dataclass(eq=False)
class HtmlText(HtmlNode):
    text: str = ""

    def is_whitespace(self) -> bool:
        return not self.text.strip()


@dataclass(eq=False)
class HtmlComment(HtmlNode):
    data: str = ""


@dataclass(eq=False)
class HtmlDoctype(HtmlNode):
    pass


@dataclass(eq=False)
class HtmlElement(HtmlNode):
    tag: str = ""
    attrs: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    children: List[HtmlNode] = field(default_factory=list, repr=False)
    start_tag_end: int = 0
    end_tag_start: int = 0

    def get_attribute(self, name: str) -> Optional[str]:
        """Attribute value; '' for a valueless attribute, None when absent."""
        name = name.lower()
        for attr_name, value in self.attrs:
            if attr_name == name:
                return value if value is not None else ""
        return None

    def element_children(self) -> List["HtmlElement"]:
        return [c for c in self.children if isinstance(c, HtmlElement)]

    def iter_descendants(self) -> Iterator[HtmlNode]:
        for child in self.children:
            yield child
            if isinstance(child, HtmlElement):
                yield from child.iter_descendants()

    def iter_ancestors(self) -> Iterator["HtmlElement"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def has_ancestor(self, tag: str) -> bool:
        return any(a.tag == tag for a in self.iter_ancestors())


class HtmlDocument:
    """Parsed HTML document: top-level nodes plus the text they index into."""

    def __init__(self, contents: str, children: List[HtmlNode], url: str = ""):
        self.contents = contents
        self.children = children
        self.url = url

    def iter_nodes(self) -> Iterator[HtmlNode]:
        for child in self.children:
            yield child
            if isinstance(child, HtmlElement):
                yield from child.iter_descendants()

    def iter_elements(self, tag: Optional[str] = None) -> Iterator[HtmlElement]:
        for node in self.iter_nodes():
            if isinstance(node, HtmlElement) and (tag is None or node.tag == tag):
                yield node

    def find_first(self, tag: str) -> Optional[HtmlElement]:
        return next(self.iter_elements(tag), None)

    def comments(self) -> List[HtmlComment]:
        return [n for n in self.iter_nodes() if isinstance(n, HtmlComment)]

    def source_of(self, node: HtmlNode) -> str:
        return self.contents[node.start:node.end]

    def inner_source(self, element: HtmlElement) -> str:
        return self.contents[element.start_tag_end:element.end_tag_start]

    def content_elements(self) -> List[HtmlElement]:
        """
        Top-level elements with html/head/body wrappers flattened away.

        Mirrors what a browser parser would put in head and body.
        """
        result: List[HtmlElement] = []

        def collect(nodes: List[HtmlNode]) -> None:
            for node in nodes:
                if not isinstance(node, HtmlElement):
                    continue
                if node.tag in ("html", "head", "body"):
                    collect(node.children)
                else:
                    result.append(node)

        collect(self.children)
        return result

    def serialize_without(
        self,
        node: HtmlNode,
        exclude: Callable[[HtmlElement], bool],
    ) -> str:
        """Source of node with every descendant element matching exclude cut out."""
        cuts: List[Tuple[int, int]] = []

        def visit(element: HtmlElement) -> None:
            for child in element.children:
                if not isinstance(child, HtmlElement):
                    continue
                if exclude(child):
                    cuts.append((child.start, child.end))
                else:
                    visit(child)

        if isinstance(node, HtmlElement):
            visit(node)
        pieces = []
        position = node.start
        for start, end in cuts:
            pieces.append(self.contents[position:start])
            position = end
        pieces.append(self.contents[position:node.end])
        return "".join(pieces)


def serialize_start_tag(tag: str, attrs: List[Tuple[str, Optional[str]]]) -> str:
    parts = [f"<{tag}"]
    for name, value in attrs:
        if value is None:
            parts.append(f" {name}")
        else:
            escaped = value.replace("&", "&amp;").replace('"', "&quot;")
            parts.append(f' {name}="{escaped}"')
    parts.append(">")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Token stream → events
# ---------------------------------------------------------------------------

@dataclass
class _Event:
    kind: str
    start: int
    end: int
    tag: str = ""
    attrs: List[Tuple[str, Optional[str]]] = field(default_factory=list)
    text: str = ""
    self_closing: bool = False
    start_tag_end: int = 0
    end_tag_start: int = 0


def _parse_attribute(token) -> Tuple[str, Optional[str]]:
    match = _ATTRIBUTE_RE.match(str(token))
    if match is None:
        return str(token).strip().lower(), None
    for group in ("dq", "sq", "uq"):
        value = match.group(group)
        if value is not None:
            return match.group("name").lower(), html.unescape(value)
    return match.group("name").lower(), None


class _HtmlEventTransformer(Transformer):
    """Turns the flat parse tree into a list of markup events."""

    def start(self, items):
        return items

    def comment(self, items):
        tok = items[0]
        return _Event("comment", tok.start_pos, tok.end_pos, text=str(tok)[4:-3])

    def doctype(self, items):
        tok = items[0]
        return _Event("doctype", tok.start_pos, tok.end_pos, text=str(tok))

    def text(self, items):
        tok = items[0]
        return _Event("text", tok.start_pos, tok.end_pos, text=str(tok))

    def start_tag(self, items):
        open_tok, end_tok = items[0], items[-1]
        return _Event(
            "start_tag",
            open_tok.start_pos,
            end_tok.end_pos,
            tag=str(open_tok)[1:].lower(),
            attrs=[_parse_attribute(t) for t in items[1:-1]],
            self_closing=str(end_tok).strip().startswith("/"),
            start_tag_end=end_tok.end_pos,
        )

    def end_tag(self, items):
        tok = items[0]
        return _Event("end_tag", tok.start_pos, tok.end_pos, tag=str(tok)[2:-1].strip().lower())

    def _raw_element(self, items):
        open_tok, close_tok = items[0], items[-1]
        end_index = next(i for i, t in enumerate(items) if t.type == "TAG_END")
        body = items[end_index + 1:-1]
        return _Event(
            "raw",
            open_tok.start_pos,
            close_tok.end_pos,
            tag=str(open_tok)[1:].lower(),
            attrs=[_parse_attribute(t) for t in items[1:end_index]],
            text=str(body[0]) if body else "",
            start_tag_end=items[end_index].end_pos,
            end_tag_start=close_tok.start_pos,
        )

    def script_element(self, items):
        return self._raw_element(items)

    def style_element(self, items):
        return self._raw_element(items)


# ---------------------------------------------------------------------------
# Events → tree
# ---------------------------------------------------------------------------

def _close(element: HtmlElement, end_tag_start: int, end: int) -> None:
    element.end_tag_start = end_tag_start
    element.end = end


def _close_implicitly(element: HtmlElement) -> None:
    last = element.children[-1].end if element.children else element.start_tag_end
    _close(element, last, last)


def _build_tree(events: List[_Event]) -> List[HtmlNode]:
    roots: List[HtmlNode] = []
    stack: List[HtmlElement] = []

    def append(node: HtmlNode) -> None:
        if stack:
            node.parent = stack[-1]
            stack[-1].children.append(node)
        else:
            roots.append(node)

    for event in events:
        if event.kind == "text":
            siblings = stack[-1].children if stack else roots
            previous = siblings[-1] if siblings else None
            if isinstance(previous, HtmlText) and previous.end == event.start:
                previous.text += event.text
                previous.end = event.end
            else:
                append(HtmlText(event.start, event.end, text=event.text))
        elif event.kind == "comment":
            append(HtmlComment(event.start, event.end, data=event.text))
        elif event.kind == "doctype":
            append(HtmlDoctype(event.start, event.end))
        elif event.kind == "start_tag":
            element = HtmlElement(
                event.start, event.end, tag=event.tag, attrs=event.attrs,
                start_tag_end=event.start_tag_end, end_tag_start=event.end,
            )
            append(element)
            if not (event.self_closing or event.tag in VOID_ELEMENTS):
                stack.append(element)
        elif event.kind == "raw":
            element = HtmlElement(
                event.start, event.end, tag=event.tag, attrs=event.attrs,
                start_tag_end=event.start_tag_end, end_tag_start=event.end_tag_start,
            )
            if event.text:
                text = HtmlText(event.start_tag_end, event.end_tag_start, text=event.text)
                text.parent = element
                element.children.append(text)
            append(element)
        elif event.kind == "end_tag":
            for index in range(len(stack) - 1, -1, -1):
                if stack[index].tag == event.tag:
                    for unclosed in reversed(stack[index + 1:]):
                        _close_implicitly(unclosed)
                    _close(stack[index], event.start, event.end)
                    del stack[index:]
                    break
            else:
                logger.debug(f"Ignoring stray end tag </{event.tag}> at offset {event.start}")

    for unclosed in reversed(stack):
        _close_implicitly(unclosed)
    return roots


class HtmlParser:
    """
    HTML parser with source offsets.

    - Lark LALR parser with the contextual lexer (raw text inside script/style)
    - Stack-based tree building (void elements, unclosed tags, stray end tags)
    - Uses Lark native caching
    """

    def __init__(self, cache_file: str = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            str(grammar_path),
            start="start",
            parser="lalr",
            lexer="contextual",
            cache=cache_file,
            maybe_placeholders=False,
        )
        self.transformer = _HtmlEventTransformer()

    def parse(self, contents: str, url: str = "<html>") -> HtmlDocument:
        """
        Parse HTML text.

        Raises:
            HtmlParseError: if the markup cannot be tokenized
        """
        if not contents:
            return HtmlDocument(contents, [], url)
        try:
            tree = self.parser.parse(contents)
            events = self.transformer.transform(tree)
        except (UnexpectedToken, UnexpectedCharacters, UnexpectedInput) as e:
            location = None
            if getattr(e, "line", None) is not None and getattr(e, "column", None) is not None:
                location = SourceLocation(file=url, line=e.line, column=e.column)
            raise HtmlParseError(f"Parse error: {e}", url, location) from e
        return HtmlDocument(contents, _build_tree(events), url)
