"""Tokenize inline Markdown into styled text spans.

The scanner walks a single run of text left to right. At every position
it tries, in order: inline code, link, bold, italic, strikethrough. The
first pattern matching at that position wins; otherwise the character is
added to the current plain run. Each match becomes one token carrying at
most one mark.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .nodes import Mark, MarkType, Node, text_node

_PATTERNS: list[tuple[MarkType, re.Pattern[str]]] = [
    (MarkType.CODE, re.compile(r"`([^`]+)`")),
    (MarkType.LINK, re.compile(r"\[([^\]]+)\]\(([^)]+)\)")),
    (MarkType.BOLD, re.compile(r"\*\*([^*]+)\*\*")),
    (MarkType.ITALIC, re.compile(r"\*([^*]+)\*")),
    (MarkType.STRIKE, re.compile(r"~~([^~]+)~~")),
]

# Characters that can open a styled span
_OPENERS = frozenset("`[*~")


@dataclass(frozen=True)
class InlineToken:
    """One span of inline text with an optional mark."""

    text: str
    mark: MarkType | None = None
    href: str | None = None


def tokenize_inline(text: str) -> list[InlineToken]:
    """Split a run of text into plain and styled tokens.

    Args:
        text: A single line or run of text.

    Returns:
        Tokens in document order. Empty input yields an empty list.
    """
    tokens: list[InlineToken] = []
    plain: list[str] = []
    pos = 0

    while pos < len(text):
        match = None
        mark = None
        if text[pos] in _OPENERS:
            for mark, pattern in _PATTERNS:
                match = pattern.match(text, pos)
                if match:
                    break

        if match is None:
            plain.append(text[pos])
            pos += 1
            continue

        if plain:
            tokens.append(InlineToken("".join(plain)))
            plain = []

        if mark == MarkType.LINK:
            tokens.append(InlineToken(match.group(1), mark, href=match.group(2)))
        else:
            tokens.append(InlineToken(match.group(1), mark))
        pos = match.end()

    if plain:
        tokens.append(InlineToken("".join(plain)))

    return tokens


def parse_inline_markdown(text: str) -> list[Node]:
    """Convert a run of inline Markdown into text nodes.

    Never raises. Text without inline syntax returns a single unmarked node;
    empty input returns an empty list.
    """
    return [_token_to_node(token) for token in tokenize_inline(text or "")]


def parse_inline(text: str) -> list[Node]:
    """Like ``parse_inline_markdown`` but never returns an empty list.

    Empty text becomes a single space so editors keep an empty block
    focusable.
    """
    if not text:
        return [text_node(" ")]
    return parse_inline_markdown(text)


def _token_to_node(token: InlineToken) -> Node:
    if token.mark is None:
        return text_node(token.text)
    if token.mark == MarkType.LINK:
        mark = Mark(type=MarkType.LINK, attrs={"href": token.href, "target": "_blank"})
    else:
        mark = Mark(type=token.mark)
    return text_node(token.text, [mark])
