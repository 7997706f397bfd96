# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Live-DOM strategy: hide the readings of known words in a parsed page.

For each ``<ruby>`` in document order the base text is every child node's
text except the ``<rt>`` readings. A base text found in the vocabulary set
gets ``visibility: hidden`` on its ``<rt>`` children; the readings stay in
the tree and keep their layout space.

Pages are best passed as raw bytes so the charset the document declares
(``<meta charset>``, ``http-equiv`` or an XML declaration) decides decoding.
"""

from __future__ import annotations

import logging
import re

import lxml.html
from lxml import etree

from furigana_filter.errors import PageSourceError
from furigana_filter.suppression import KnownVocabulary

logger = logging.getLogger(__name__)

_READING_TAG = "rt"
_HIDDEN_DECLARATION = "visibility: hidden"
_VISIBILITY_RE = re.compile(r"(?:^|;)\s*visibility\s*:\s*([^;]*)", re.IGNORECASE)

# <meta charset=...>, <meta http-equiv content="...; charset=...">, <?xml encoding=...?>
_DECLARED_ENCODING_RE = re.compile(
    rb"""<meta[^>]*?charset\s*=\s*["']?\s*([A-Za-z0-9_.:-]+)"""
    rb"""|<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9_.:-]+)""",
    re.IGNORECASE,
)
_SNIFF_BYTES = 2048
_DEFAULT_ENCODING = "utf-8"


def _is_element(node: etree._Element) -> bool:
    # Comments and processing instructions have a callable .tag
    return isinstance(node.tag, str)


def base_text(ruby: lxml.html.HtmlElement) -> str:
    """Return the text of *ruby* with its ``<rt>`` readings left out.

    Inline markup other than ``<rt>`` (``<rb>``, ``<span>``, ``<rp>``) keeps
    its text, and text following an ``<rt>`` still counts.
    """
    parts = [ruby.text or ""]
    for child in ruby:
        if _is_element(child) and child.tag.lower() != _READING_TAG:
            parts.append(child.text_content())
        parts.append(child.tail or "")
    return "".join(parts)


def _readings(ruby: lxml.html.HtmlElement) -> list[lxml.html.HtmlElement]:
    return [child for child in ruby if _is_element(child) and child.tag.lower() == _READING_TAG]


def is_hidden(el: lxml.html.HtmlElement) -> bool:
    """``True`` if the last inline ``visibility`` declaration on *el* is ``hidden``."""
    values = _VISIBILITY_RE.findall(el.get("style", ""))
    return bool(values) and values[-1].strip().lower() == "hidden"


def hide_element(el: lxml.html.HtmlElement) -> bool:
    """Append ``visibility: hidden`` to *el*'s style. Returns ``False`` if already hidden.

    The existing declarations are kept verbatim; the appended one wins by
    coming last.
    """
    if is_hidden(el):
        return False
    style = el.get("style", "").strip().rstrip(";").rstrip()
    el.set("style", f"{style}; {_HIDDEN_DECLARATION}" if style else _HIDDEN_DECLARATION)
    return True


def hide_known_readings(root: lxml.html.HtmlElement, known: KnownVocabulary) -> tuple[int, int]:
    """Hide readings of every ``<ruby>`` under *root* whose base text is known.

    Returns ``(rubies_seen, rubies_hidden)``. Running it again with the same
    set leaves the document unchanged.
    """
    seen = 0
    hidden = 0
    for ruby in root.iter("ruby"):
        seen += 1
        if base_text(ruby) not in known:
            continue
        readings = _readings(ruby)
        if not readings:
            continue
        for rt in readings:
            hide_element(rt)
        hidden += 1
    logger.debug("Hid readings on %d of %d ruby element(s)", hidden, seen)
    return seen, hidden


def declared_encoding(data: bytes) -> str | None:
    """Return the charset named near the top of *data*, if any."""
    m = _DECLARED_ENCODING_RE.search(data[:_SNIFF_BYTES])
    if m is None:
        return None
    return (m.group(1) or m.group(2)).decode("ascii")


def _html_parser(encoding: str) -> lxml.html.HTMLParser:
    try:
        return lxml.html.HTMLParser(encoding=encoding)
    except LookupError:
        logger.warning("Unknown page encoding %r, decoding as %s", encoding, _DEFAULT_ENCODING)
        return lxml.html.HTMLParser(encoding=_DEFAULT_ENCODING)


def parse_page(html: str | bytes) -> lxml.html.HtmlElement:
    """Parse *html* into a document root.

    Bytes are decoded with the document's declared charset, UTF-8 otherwise.
    Text is taken as already decoded, so any declaration inside it is ignored.
    """
    if not html or not html.strip():
        raise PageSourceError("Empty HTML document")
    if isinstance(html, str):
        data, encoding = html.encode("utf-8"), _DEFAULT_ENCODING
    else:
        data, encoding = html, declared_encoding(html) or _DEFAULT_ENCODING
    try:
        return lxml.html.document_fromstring(data, parser=_html_parser(encoding))
    except (etree.ParserError, ValueError) as e:
        raise PageSourceError(f"Cannot parse HTML: {e}") from e


def serialize_page(root: lxml.html.HtmlElement) -> str:
    """Serialize a document root back to HTML, keeping its doctype."""
    return etree.tostring(root.getroottree(), encoding="unicode", method="html")


def encode_page(html: str, encoding: str | None) -> bytes:
    """Encode serialized *html* for writing, in the charset the page declared."""
    try:
        return html.encode(encoding or _DEFAULT_ENCODING, errors="xmlcharrefreplace")
    except LookupError:
        return html.encode(_DEFAULT_ENCODING)


def suppress_page_html(html: str | bytes, known: KnownVocabulary) -> tuple[str, int, int]:
    """Parse, hide known readings, and serialize.

    Returns ``(html, rubies_seen, rubies_hidden)``.
    """
    root = parse_page(html)
    seen, hidden = hide_known_readings(root, known)
    return serialize_page(root), seen, hidden
