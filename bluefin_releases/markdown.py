"""Markdown to HTML rendering for release notes."""

from functools import lru_cache

from markdown_it import MarkdownIt


@lru_cache(maxsize=1)
def _renderer() -> MarkdownIt:
    # CommonMark plus the GitHub-flavoured table and strikethrough rules
    md = MarkdownIt("commonmark", {"html": False, "linkify": False, "typographer": False})
    md.enable(["table", "strikethrough"])
    return md


def render(markdown: str) -> str:
    """
    Render markdown to HTML.

    Raw HTML in the input is escaped rather than passed through, since release
    notes come from third parties.

    Args:
        markdown: Markdown source

    Returns:
        HTML string, empty for empty input
    """
    if not markdown:
        return ""
    return _renderer().render(markdown)
