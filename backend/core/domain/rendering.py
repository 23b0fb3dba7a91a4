"""Render content blocks to HTML and plain text."""

import html
import math
import re
from typing import Any, Iterable, Optional

import markdown

from .blocks import BaseBlock, parse_blocks

WORDS_PER_MINUTE = 225

_TAG = re.compile(r"<[^>]*>")
_NON_SLUG = re.compile(r"[^a-z0-9]+")
_PARAGRAPH_WRAPPER = re.compile(r"^<p>(.*)</p>$", re.DOTALL)


def _blocks(content: Any) -> list[BaseBlock]:
    if content and isinstance(content[0], BaseBlock):
        return list(content)
    return parse_blocks(content)


def _inline(text: str) -> str:
    """Markdown for a single line of text, without the wrapping <p>."""
    rendered = markdown.markdown(text).strip()
    match = _PARAGRAPH_WRAPPER.match(rendered)
    return match.group(1) if match else rendered


def _anchor(text: str, seen: dict[str, int]) -> str:
    base = _NON_SLUG.sub("-", _TAG.sub("", text).lower()).strip("-") or "section"
    count = seen.get(base, 0)
    seen[base] = count + 1
    return base if count == 0 else f"{base}-{count + 1}"


def iter_text(blocks: Iterable[BaseBlock]) -> Iterable[str]:
    """Yield every piece of reader-visible text in ``blocks``."""
    for block in blocks:
        if block.type in ("paragraph", "heading", "quote", "code"):
            yield block.content
        elif block.type == "list":
            yield from block.items
        elif block.type in ("image", "video") and block.caption:
            yield block.caption
        elif block.type == "poll":
            yield block.question
            yield from block.options
        elif block.type == "table":
            yield from block.headers
            for row in block.rows:
                yield from row
        elif block.type == "columns":
            for column in block.columns:
                yield from iter_text(column)


def render_text(content: Any) -> str:
    """Plain-text rendering, used for search snippets and newsletters."""
    parts = [_TAG.sub("", text).strip() for text in iter_text(_blocks(content))]
    return "\n\n".join(part for part in parts if part)


def count_words(content: Any) -> int:
    return len(render_text(content).split())


def calculate_read_time(content: Any) -> int:
    """Reading time in whole minutes at 225 words per minute, never below 1."""
    words = count_words(content)
    return max(1, math.floor(words / WORDS_PER_MINUTE + 0.5))


def build_table_of_contents(content: Any) -> list[dict[str, Any]]:
    """Heading entries (id, text, level) in document order."""
    seen: dict[str, int] = {}
    entries = []
    for block in _walk(_blocks(content)):
        if block.type == "heading" and block.content.strip():
            entries.append(
                {
                    "id": _anchor(block.content, seen),
                    "text": _TAG.sub("", block.content).strip(),
                    "level": block.level,
                }
            )
    return entries


def _walk(blocks: Iterable[BaseBlock]) -> Iterable[BaseBlock]:
    for block in blocks:
        yield block
        if block.type == "columns":
            for column in block.columns:
                yield from _walk(column)


def render_html(content: Any) -> str:
    """Render blocks to HTML.

    Text goes through Markdown so inline links written in the editor as
    ``[text](url)`` become anchors. Headings get ids matching
    :func:`build_table_of_contents`.
    """
    blocks = _blocks(content)
    toc = build_table_of_contents(blocks)
    return _render_blocks(blocks, toc, {})


def _render_blocks(
    blocks: list[BaseBlock],
    toc: list[dict[str, Any]],
    seen: dict[str, int],
) -> str:
    return "\n".join(
        rendered
        for rendered in (_render_block(block, toc, seen) for block in blocks)
        if rendered
    )


def _align_attr(block: BaseBlock) -> str:
    if block.align and block.align not in ("left", "full"):
        return f' style="text-align: {html.escape(block.align)}"'
    return ""


def _caption(caption: Optional[str]) -> str:
    return f"<figcaption>{_inline(caption)}</figcaption>" if caption else ""


def _render_block(block: BaseBlock, toc: list[dict[str, Any]], seen: dict[str, int]) -> str:
    kind = block.type
    if kind == "paragraph":
        if not block.content.strip():
            return ""
        return f"<p{_align_attr(block)}>{_inline(block.content)}</p>"
    if kind == "heading":
        if not block.content.strip():
            return ""
        anchor = _anchor(block.content, seen)
        return f'<h{block.level} id="{anchor}">{_inline(block.content)}</h{block.level}>'
    if kind == "quote":
        cite = f"<cite>{html.escape(block.citation)}</cite>" if block.citation else ""
        return f"<blockquote>{markdown.markdown(block.content)}{cite}</blockquote>"
    if kind == "code":
        lang = f' class="language-{html.escape(block.language)}"' if block.language else ""
        return f"<pre><code{lang}>{html.escape(block.content)}</code></pre>"
    if kind == "list":
        tag = "ol" if block.ordered else "ul"
        items = "".join(f"<li>{_inline(item)}</li>" for item in block.items)
        return f"<{tag}>{items}</{tag}>"
    if kind == "image":
        if not block.src:
            return ""
        return (
            f"<figure{_align_attr(block)}>"
            f'<img src="{html.escape(block.src)}" alt="{html.escape(block.alt)}" loading="lazy">'
            f"{_caption(block.caption)}</figure>"
        )
    if kind == "video":
        src = block.url or (f"https://www.youtube.com/embed/{block.video_id}" if block.video_id else "")
        if not src:
            return ""
        return (
            f'<figure class="video"><iframe src="{html.escape(src)}" allowfullscreen></iframe>'
            f"{_caption(block.caption)}</figure>"
        )
    if kind == "embed":
        if block.html:
            return f'<div class="embed">{block.html}</div>'
        if not block.url:
            return ""
        return f'<div class="embed"><a href="{html.escape(block.url)}">{html.escape(block.url)}</a></div>'
    if kind == "table":
        head = "".join(f"<th>{_inline(cell)}</th>" for cell in block.headers)
        body = "".join(
            "<tr>" + "".join(f"<td>{_inline(cell)}</td>" for cell in row) + "</tr>"
            for row in block.rows
        )
        thead = f"<thead><tr>{head}</tr></thead>" if head else ""
        return f"<table>{thead}<tbody>{body}</tbody></table>"
    if kind == "poll":
        options = "".join(f"<li>{html.escape(option)}</li>" for option in block.options)
        return (
            f'<div class="poll" data-multiple="{str(block.multiple_choice).lower()}">'
            f"<p>{html.escape(block.question)}</p><ul>{options}</ul></div>"
        )
    if kind == "columns":
        columns = "".join(
            f'<div class="column">{_render_blocks(column, toc, seen)}</div>'
            for column in block.columns
        )
        return f'<div class="columns">{columns}</div>'
    if kind == "toc":
        if not toc:
            return ""
        items = "".join(
            f'<li class="toc-level-{entry["level"]}"><a href="#{entry["id"]}">'
            f"{html.escape(entry['text'])}</a></li>"
            for entry in toc
        )
        return f'<nav class="toc"><p>{html.escape(block.title)}</p><ul>{items}</ul></nav>'
    if kind == "divider":
        return "<hr>"
    return ""
