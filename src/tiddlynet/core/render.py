"""Markdown rendering for tiddler text served with ``?render=1``."""

import re
from typing import Callable
from xml.etree.ElementTree import Element

from markdown import Markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor, SimpleTagInlineProcessor

from tiddlynet.core.models import quote_component

# Tiddler links: [[Title]] or [[Display Text|Title]]
TIDDLER_LINK_PATTERN = r"\[\[(?:([^\]|]+)\|)?([^\]|]+)\]\]"

# Group 2 must contain the text (SimpleTagInlineProcessor expectation)
STRIKETHROUGH_PATTERN = r"(~~)(.*?)~~"

# Types rendered as Markdown. Untyped tiddlers count as Markdown too.
RENDERABLE_TYPES = {None, "", "text/x-markdown", "text/markdown"}


class StrikethroughExtension(Extension):
    """Markdown extension for ~~strikethrough~~ text."""

    def extendMarkdown(self, md: Markdown) -> None:
        md.inlinePatterns.register(
            SimpleTagInlineProcessor(STRIKETHROUGH_PATTERN, "del"),
            "strikethrough",
            50,
        )


class TiddlerLinkInlineProcessor(InlineProcessor):
    """Turn [[links]] into anchors relative to the container's tiddlers/."""

    def __init__(self, pattern: str, md: Markdown, exists: Callable[[str], bool]):
        super().__init__(pattern, md)
        self.exists = exists

    def handleMatch(self, m: re.Match, data: str) -> tuple[Element | None, int, int]:
        title = m.group(2).strip()
        display_text = (m.group(1) or title).strip()

        el = Element("a")
        el.text = display_text
        el.set("href", quote_component(title))
        if self.exists(title):
            el.set("class", "tiddlyLink")
        else:
            el.set("class", "tiddlyLink tiddlyLinkNonExisting")
        return el, m.start(0), m.end(0)


class TiddlerLinkExtension(Extension):
    """Markdown extension for tiddler links."""

    def __init__(self, exists: Callable[[str], bool] | None = None, **kwargs):
        self.exists = exists or (lambda title: True)
        super().__init__(**kwargs)

    def extendMarkdown(self, md: Markdown) -> None:
        md.inlinePatterns.register(
            TiddlerLinkInlineProcessor(TIDDLER_LINK_PATTERN, md, self.exists),
            "tiddler_link",
            75,
        )


def create_renderer(exists: Callable[[str], bool] | None = None) -> Markdown:
    """Create a Markdown renderer with tiddler link support.

    Args:
        exists: Callback telling whether a linked title exists, used to
            mark links to missing tiddlers.
    """
    return Markdown(
        extensions=[
            "extra",
            "sane_lists",
            StrikethroughExtension(),
            TiddlerLinkExtension(exists=exists),
        ]
    )


def render_text(
    text: str | None,
    type: str | None = None,
    exists: Callable[[str], bool] | None = None,
) -> str | None:
    """Render tiddler text to HTML, or return None for non-Markdown types."""
    if text is None or type not in RENDERABLE_TYPES:
        return None
    return create_renderer(exists).convert(text)
