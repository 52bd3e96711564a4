"""Rendering helpers for chat bubbles: markdown, typewriter reveal, usage ring."""

import html
import math
import re
from collections.abc import Iterator

_CODE_BLOCK_RE = re.compile(r"```(\w*)\n?([\s\S]*?)```")
_CODE_BLOCK_HTML = (
    '<div class="code-block my-2">'
    '<div class="code-lang">{lang}</div>'
    '<pre class="bg-gray-800 text-gray-100 rounded-b-lg p-3 overflow-x-auto text-xs"><code>{code}</code></pre>'
    "</div>"
)


def _wrap_lists(text: str, item_pattern: str, tag: str, classes: str) -> str:
    """Group consecutive list lines into a single <ul>/<ol> element."""
    item_re = re.compile(item_pattern)
    result: list[str] = []
    in_list = False
    for line in text.split("\n"):
        stripped = line.strip()
        if item_re.match(stripped):
            if not in_list:
                result.append(f'<{tag} class="{classes}">')
                in_list = True
            result.append(f"<li>{item_re.sub('', stripped, count=1)}</li>")
            continue
        if in_list:
            result.append(f"</{tag}>")
            in_list = False
        result.append(line)
    if in_list:
        result.append(f"</{tag}>")
    return "\n".join(result)


def markdown_to_html(text: str) -> str:
    """Convert markdown to HTML for chat display.

    Supports: fenced code blocks with a language label, inline code, headings,
    bold, italic, links, unordered and ordered lists.
    """
    # Quotes included; link URLs end up inside an href attribute
    text = html.escape(text)

    # Fenced code is lifted out so inline rules below leave it alone
    blocks: list[str] = []

    def stash(match: re.Match[str]) -> str:
        lang = match.group(1) or "text"
        blocks.append(_CODE_BLOCK_HTML.format(lang=lang, code=match.group(2).rstrip("\n")))
        return f"\x00{len(blocks) - 1}\x00"

    text = _CODE_BLOCK_RE.sub(stash, text)

    text = re.sub(
        r"`([^`]+)`",
        r'<code class="bg-gray-200 text-pink-600 px-1.5 py-0.5 rounded text-xs">\1</code>',
        text,
    )
    text = re.sub(r"^#{1,6}\s+(.+)$", r'<div class="font-semibold mt-2">\1</div>', text, flags=re.MULTILINE)
    text = re.sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>", text)
    text = re.sub(r"__(.+?)__", r"<strong>\1</strong>", text)
    text = re.sub(r"\*([^*\n]+)\*", r"<em>\1</em>", text)
    text = re.sub(r"\b_([^_\n]+)_\b", r"<em>\1</em>", text)
    text = re.sub(
        r"\[([^\]]+)\]\((https?://[^)\s\"'<>]+)\)",
        r'<a href="\2" class="text-blue-600 underline" target="_blank">\1</a>',
        text,
    )

    text = _wrap_lists(text, r"^[-*]\s+", "ul", "list-disc list-inside my-2 space-y-1")
    text = _wrap_lists(text, r"^\d+\.\s+", "ol", "list-decimal list-inside my-2 space-y-1")

    text = text.replace("\n", "<br>")
    return re.sub(r"\x00(\d+)\x00", lambda m: blocks[int(m.group(1))], text)


def typewriter_steps(text: str, max_steps: int = 60, min_chunk: int = 2) -> Iterator[str]:
    """Yield growing prefixes of ``text`` ending with the full text.

    Long answers advance in bigger chunks so the reveal takes at most
    ``max_steps`` frames.
    """
    if not text:
        return
    chunk = max(min_chunk, math.ceil(len(text) / max_steps))
    for end in range(chunk, len(text), chunk):
        yield text[:end]
    yield text


def usage_fraction(used: int, daily_limit: int | None) -> float:
    """Share of today's limit used, clamped to 0..1 (0 when unlimited)."""
    if not daily_limit:
        return 0.0
    return min(max(used / daily_limit, 0.0), 1.0)
