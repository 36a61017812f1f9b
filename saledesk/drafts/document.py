"""Conversion between editor HTML and the SaleEditor document format.

The service stores notes as a tree of ``Paragraph`` nodes holding ``Text``
nodes, never as markup.  Only the formatting the notes editor can produce is
mapped: headings 1-3, bold, italic, underline, strikethrough and text colour.
"""
from __future__ import annotations

import re
from html import escape
from html.parser import HTMLParser
from typing import Any, Dict, List, Optional

EMPTY_PARAGRAPH = "<p><br></p>"

_LEVELS = {"h1": 1, "h2": 2, "h3": 3}
_BLOCKS = {"p", "div", "li", "blockquote", "pre", *_LEVELS}
_VOID = {"br", "img", "hr", "input", "wbr"}
_FLAGS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "u": "underline",
    "s": "strikethrough",
    "strike": "strikethrough",
    "del": "strikethrough",
}
_COLOR = re.compile(r"(?:^|;)\s*color:\s*([^;]+)")
_TAGS = re.compile(r"<[^>]*>")


def is_blank(html: Optional[str]) -> bool:
    """True for content the editor emits when nothing has been typed."""
    text = (html or "").strip()
    return text == "" or text == EMPTY_PARAGRAPH


def has_text(html: Optional[str]) -> bool:
    return bool(_TAGS.sub("", html or "").strip())


def _blank_paragraph() -> Dict[str, Any]:
    return {"type": "Paragraph", "level": 0, "children": [{"type": "Text", "text": " "}]}


class _DocumentBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.paragraphs: List[Dict[str, Any]] = []
        self._current: Optional[Dict[str, Any]] = None
        self._marks: List[Dict[str, Any]] = []

    def _open(self, level: int = 0) -> Dict[str, Any]:
        self._current = {"type": "Paragraph", "level": level, "children": []}
        self.paragraphs.append(self._current)
        return self._current

    def _close(self) -> None:
        if self._current is not None and not self._current["children"]:
            self._current["children"].append({"type": "Text", "text": " "})
        self._current = None

    def handle_starttag(self, tag, attrs):
        if tag in _VOID:
            return
        if tag in _BLOCKS:
            self._close()
            self._open(_LEVELS.get(tag, 0))
            return
        mark: Dict[str, Any] = {}
        if tag in _FLAGS:
            mark[_FLAGS[tag]] = True
        style = dict(attrs).get("style") or ""
        match = _COLOR.search(style)
        if match:
            mark["foreground"] = match.group(1).strip()
        self._marks.append(mark)

    def handle_endtag(self, tag):
        if tag in _BLOCKS:
            self._close()
        elif self._marks:
            self._marks.pop()

    def handle_data(self, data):
        if not data.strip():
            return
        if self._current is None:
            self._open()
        node: Dict[str, Any] = {"type": "Text", "text": data}
        for mark in self._marks:
            node.update(mark)
        self._current["children"].append(node)

    def close(self):
        super().close()
        self._close()


def html_to_document(html: str) -> Dict[str, Any]:
    builder = _DocumentBuilder()
    builder.feed(html or "")
    builder.close()
    children = builder.paragraphs
    if not children:
        children = [_blank_paragraph()]
    return {"children": children}


def _text_to_html(node: Dict[str, Any]) -> str:
    if node.get("type") != "Text":
        return ""
    html = escape(node.get("text") or "", quote=False)
    if node.get("bold"):
        html = f"<strong>{html}</strong>"
    if node.get("italic"):
        html = f"<em>{html}</em>"
    if node.get("underline"):
        html = f"<u>{html}</u>"
    if node.get("strikethrough"):
        html = f"<s>{html}</s>"
    if node.get("foreground"):
        html = f'<span style="color: {node["foreground"]}">{html}</span>'
    return html


def document_to_html(content: Optional[Dict[str, Any]]) -> str:
    parts = []
    for node in (content or {}).get("children") or []:
        if node.get("type") != "Paragraph":
            continue
        level = node.get("level") or 0
        tag = f"h{level}" if level in (1, 2, 3) else "p"
        inner = "".join(_text_to_html(child) for child in node.get("children") or [])
        parts.append(f"<{tag}>{inner}</{tag}>")
    return "".join(parts)
