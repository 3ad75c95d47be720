"""Restrict content-block bodies to a small set of safe inline markup."""

import re
from typing import List

from bs4 import BeautifulSoup, Comment, Tag
from bs4.element import PageElement

# Tags whose entire subtree should be removed
_REMOVE_TAGS = {
    "script",
    "style",
    "noscript",
    "iframe",
    "object",
    "embed",
    "applet",
    "link",
    "meta",
    "svg",
    "canvas",
    "template",
    "form",
}

# Tags kept as-is; anything else is unwrapped to its text
_ALLOWED_TAGS = {
    "p",
    "br",
    "strong",
    "b",
    "em",
    "i",
    "u",
    "a",
    "ul",
    "ol",
    "li",
    "code",
    "span",
}

_SAFE_HREF = re.compile(r"^(https?://|mailto:|/|#)", re.IGNORECASE)

# Top-level containers; any other top-level content is grouped into <p>
_BLOCK_TAGS = {"p", "ul", "ol"}


def _wrap_loose_inline(soup: BeautifulSoup, root: Tag) -> None:
    """Group runs of top-level text and inline tags under *root* into <p> elements."""
    run: List[PageElement] = []

    def flush() -> None:
        if any(isinstance(node, Tag) or node.strip() for node in run):
            paragraph = soup.new_tag("p")
            run[0].insert_before(paragraph)
            for node in run:
                paragraph.append(node.extract())
        else:
            for node in run:
                node.extract()
        run.clear()

    for node in list(root.contents):
        if isinstance(node, Tag) and node.name in _BLOCK_TAGS:
            if run:
                flush()
            continue
        run.append(node)
    if run:
        flush()


def sanitize_block_body(html: str) -> str:
    """Return *html* reduced to the markup a content block may carry.

    Disallowed subtrees (scripts, styles, embeds) are dropped, other unknown
    tags are unwrapped, every attribute except a safe ``href`` on ``<a>`` is
    stripped, and comments are removed.
    Top-level text and inline tags always end up inside <p>, whatever the
    parser does with bare fragments.
    """
    soup = BeautifulSoup(html, "lxml")

    for tag in soup.find_all(_REMOVE_TAGS):
        tag.decompose()

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(True):
        if not isinstance(tag, Tag):
            continue
        if tag.name in ("html", "body"):
            continue
        if tag.name not in _ALLOWED_TAGS:
            tag.unwrap()
            continue
        href = tag.get("href") if tag.name == "a" else None
        tag.attrs = {}
        if href and _SAFE_HREF.match(str(href).strip()):
            tag["href"] = str(href).strip()

    root = soup.body or soup.html or soup
    _wrap_loose_inline(soup, root)
    return root.decode_contents().strip()
